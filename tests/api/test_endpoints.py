"""Tests for API endpoints."""

import pytest

import api.routes.table as table_routes
from api.session import get_session_signer
from helpers import stacked_table


def headers(session_id: str) -> dict[str, str]:
    return {"X-Session-ID": session_id}


@pytest.mark.asyncio
async def test_health_check(client):
    """Test health check endpoint."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_new_table(client, session_id):
    """Test creating a new table."""
    response = await client.get("/api/table/state", headers=headers(session_id))
    assert response.status_code == 200
    data = response.json()

    assert data["phase"] == "WAITING"
    assert data["players"] == []
    assert data["current_player_id"] is None


@pytest.mark.asyncio
async def test_unknown_session(client):
    """Test that a validly signed but never created session is a 404."""
    token = get_session_signer().sign("never-created")
    response = await client.get("/api/table/state", headers=headers(token))
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("post", "/api/table/new"),
        ("get", "/api/table/state"),
        ("post", "/api/table/players"),
        ("post", "/api/table/round"),
    ],
)
async def test_forged_session_rejected(client, method, path):
    """Test that unsigned session ids are refused on every route."""
    response = await getattr(client, method)(path, headers=headers("not-a-signed-token"))
    assert response.status_code == 401
    assert "not-a-signed-token" not in table_routes._tables


@pytest.mark.asyncio
async def test_forged_session_rejected_on_action(client):
    """Test that actions also require a signed session id."""
    response = await client.post(
        "/api/table/action",
        json={"player_id": 1, "action": "hit"},
        headers=headers("not-a-signed-token"),
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_tampered_session_rejected(client, session_id):
    """Test that altering a signed id invalidates it."""
    response = await client.get("/api/table/state", headers=headers(session_id + "x"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_session_evicts_cached_table(client, session_id, memory_store):
    """A table whose session the store dropped is forgotten."""
    await client.post("/api/table/players", headers=headers(session_id))
    assert session_id in table_routes._tables
    assert session_id in table_routes._locks

    await memory_store.delete(session_id)

    response = await client.post("/api/table/players", headers=headers(session_id))
    assert response.status_code == 404
    assert session_id not in table_routes._tables
    assert session_id not in table_routes._locks


@pytest.mark.asyncio
async def test_round_without_players(client, session_id):
    """Test that dealing an empty table is refused."""
    response = await client.post("/api/table/round", headers=headers(session_id))
    assert response.status_code == 400
    assert "no players" in response.json()["detail"]


@pytest.mark.asyncio
async def test_seat_and_deal(client, session_id):
    """Test seating players and dealing a round."""
    for expected_id in (1, 2):
        response = await client.post("/api/table/players", headers=headers(session_id))
        assert response.status_code == 200
        assert response.json()["player_id"] == expected_id

    response = await client.post("/api/table/round", headers=headers(session_id))
    assert response.status_code == 200
    data = response.json()

    assert data["phase"] in ["PLAYER_TURNS", "RESOLVED"]
    assert all(len(p["hands"][0]["cards"]) == 2 for p in data["players"])
    assert data["cards_remaining"] == 46


@pytest.mark.asyncio
async def test_roster_full(client, session_id):
    """The eighth seat is a conflict."""
    for _ in range(7):
        await client.post("/api/table/players", headers=headers(session_id))

    response = await client.post("/api/table/players", headers=headers(session_id))
    assert response.status_code == 409
    assert "(7)" in response.json()["detail"]


@pytest.mark.asyncio
async def test_hole_card_masked_during_turns(client, session_id):
    """Players only see the dealer's upcard until the reveal."""
    table_routes._tables[session_id] = stacked_table("10S", "7H", "9C", "8D")

    response = await client.post("/api/table/round", headers=headers(session_id))
    dealer = response.json()["dealer"]

    assert dealer["hole_card_hidden"] is True
    assert dealer["value"] == 9
    assert dealer["cards"][0]["rank"] == "9"
    assert dealer["cards"][1] == {
        "rank": "?",
        "suit": "?",
        "value": 0,
        "is_red": False,
        "hidden": True,
    }


@pytest.mark.asyncio
async def test_play_round_to_push(client, session_id):
    """Stand on 17 against 17."""
    table_routes._tables[session_id] = stacked_table("10S", "7H", "9C", "8D")
    await client.post("/api/table/round", headers=headers(session_id))

    response = await client.post(
        "/api/table/action",
        json={"player_id": 1, "action": "stand"},
        headers=headers(session_id),
    )
    assert response.status_code == 200
    data = response.json()

    assert data["phase"] == "RESOLVED"
    assert data["dealer"]["hole_card_hidden"] is False
    assert data["dealer"]["value"] == 17
    assert data["results"] == [
        {"player_id": 1, "hand_index": 0, "value": 17, "stake": 10, "outcome": "push", "net": 0}
    ]
    assert data["message"] == "Dealer's hand: 17. Player 1 Hand 1 ties."


@pytest.mark.asyncio
async def test_capabilities_follow_turn(client, session_id):
    """Only the active player's controls are enabled."""
    table_routes._tables[session_id] = stacked_table(
        "8S", "8H", "10C", "7H", "9C", "6D", players=2
    )
    response = await client.post("/api/table/round", headers=headers(session_id))
    first, second = response.json()["players"]

    assert first["is_active"] and first["can_split"] and first["can_double"]
    assert not second["is_active"]
    assert not any(second[k] for k in ("can_hit", "can_stand", "can_double", "can_split"))


@pytest.mark.asyncio
async def test_illegal_action_reports_reason(client, session_id):
    """Out-of-turn actions are rejected with the reason."""
    table_routes._tables[session_id] = stacked_table(
        "10S", "7H", "10C", "6H", "9C", "8D", players=2
    )
    await client.post("/api/table/round", headers=headers(session_id))

    response = await client.post(
        "/api/table/action",
        json={"player_id": 2, "action": "hit"},
        headers=headers(session_id),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "It is not Player 2's turn"


@pytest.mark.asyncio
async def test_unknown_action_is_validation_error(client, session_id):
    """Test that the schema only admits the four actions."""
    response = await client.post(
        "/api/table/action",
        json={"player_id": 1, "action": "surrender"},
        headers=headers(session_id),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deck_exhausted_is_conflict(client, session_id):
    """An exhausted deck aborts the round and is reported."""
    table = stacked_table("10S", "7H", "9C", "8D")
    table_routes._tables[session_id] = table
    await client.post("/api/table/round", headers=headers(session_id))
    table.deck.stack([])

    response = await client.post(
        "/api/table/action",
        json={"player_id": 1, "action": "hit"},
        headers=headers(session_id),
    )
    assert response.status_code == 409

    state = await client.get("/api/table/state", headers=headers(session_id))
    assert state.json()["phase"] == "ABORTED"


@pytest.mark.asyncio
async def test_state_survives_cache_eviction(client, session_id):
    """Tables are restored from the session store."""
    table_routes._tables[session_id] = stacked_table("8S", "8H", "10C", "7D", "3C", "2D")
    await client.post("/api/table/round", headers=headers(session_id))
    await client.post(
        "/api/table/action",
        json={"player_id": 1, "action": "split"},
        headers=headers(session_id),
    )

    del table_routes._tables[session_id]

    response = await client.get("/api/table/state", headers=headers(session_id))
    player = response.json()["players"][0]
    assert len(player["hands"]) == 2
    assert player["current_hand_index"] == 0
    assert response.json()["phase"] == "PLAYER_TURNS"


@pytest.mark.asyncio
async def test_no_catch_all_root_route(client):
    """Only the API is served; the root path is not mounted."""
    response = await client.get("/")
    assert response.status_code == 404
