"""Table API endpoints."""

import asyncio
import time
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Header

from api.schemas import (
    ActionRequest,
    CardResponse,
    DealerResponse,
    HandResponse,
    HandResultResponse,
    JoinResponse,
    PlayerResponse,
    TableStateResponse,
)
from api.session import create_session, extract_session_id, get_session_store
from config import config
from core.cards import Card, Rank, Suit
from core.game import BlackjackTable, HandResult, Outcome
from core.game.player import Player
from core.hand import Hand
from core.rules import TableRules

router = APIRouter()

# In-memory table cache (for performance, backed by session store)
_tables: dict[str, BlackjackTable] = {}

# One writer per table
_locks: dict[str, asyncio.Lock] = {}

# Session data keys
SESSION_KEY_TABLE = "table"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def _table_lock(session_id: str) -> asyncio.Lock:
    return _locks.setdefault(session_id, asyncio.Lock())


def _default_rules() -> TableRules:
    return TableRules(
        max_players=config.game.max_players,
        default_stake=config.game.default_stake,
        dealer_stands_on=config.game.dealer_stands_on,
    )


def _serialize_card(card: Card) -> dict[str, int]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value}


def _deserialize_card(data: dict[str, int]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def _serialize_hand(hand: Hand) -> dict[str, Any]:
    """Serialize a hand to a dict."""
    return {
        "cards": [_serialize_card(c) for c in hand.cards],
        "stake": hand.stake,
        "is_doubled": hand.is_doubled,
        "is_stood": hand.is_stood,
        "is_split_hand": hand.is_split_hand,
    }


def _deserialize_hand(data: dict[str, Any]) -> Hand:
    """Deserialize a hand from a dict."""
    return Hand(
        cards=[_deserialize_card(c) for c in data["cards"]],
        stake=data["stake"],
        is_doubled=data["is_doubled"],
        is_stood=data["is_stood"],
        is_split_hand=data["is_split_hand"],
    )


def _serialize_result(result: HandResult) -> dict[str, Any]:
    return {
        "player_id": result.player_id,
        "hand_index": result.hand_index,
        "value": result.value,
        "stake": result.stake,
        "outcome": result.outcome.value,
        "busted": result.busted,
    }


def _deserialize_result(data: dict[str, Any]) -> HandResult:
    return HandResult(
        player_id=data["player_id"],
        hand_index=data["hand_index"],
        value=data["value"],
        stake=data["stake"],
        outcome=Outcome(data["outcome"]),
        busted=data["busted"],
    )


def _serialize_table(table: BlackjackTable) -> dict[str, Any]:
    """Serialize table state for session storage."""
    return {
        "phase": table._machine_state,
        "turn_index": table.turn_index,
        "hole_card_hidden": table.hole_card_hidden,
        "message": table.message,
        "deck_cards": [_serialize_card(c) for c in table.deck],
        "dealer_hand": _serialize_hand(table.dealer_hand),
        "players": [
            {
                "player_id": p.player_id,
                "current_hand_index": p.current_hand_index,
                "hands": [_serialize_hand(h) for h in p.hands],
            }
            for p in table.players
        ],
        "results": [_serialize_result(r) for r in table.results],
        "rules": {
            "max_players": table.rules.max_players,
            "default_stake": table.rules.default_stake,
            "dealer_stands_on": table.rules.dealer_stands_on,
        },
    }


def _deserialize_table(data: dict[str, Any]) -> BlackjackTable:
    """Restore a table from session data."""
    table = BlackjackTable(rules=TableRules(**data["rules"]))

    # Restore state machine state
    table._machine_state = data["phase"]

    table.turn_index = data["turn_index"]
    table.hole_card_hidden = data["hole_card_hidden"]
    table.message = data["message"]
    table.deck.stack([_deserialize_card(c) for c in data["deck_cards"]])
    table.dealer_hand = _deserialize_hand(data["dealer_hand"])
    table.players = [
        Player(
            player_id=p["player_id"],
            hands=[_deserialize_hand(h) for h in p["hands"]],
            current_hand_index=p["current_hand_index"],
        )
        for p in data["players"]
    ]
    table.results = [_deserialize_result(r) for r in data["results"]]
    return table


async def _save_table(session_id: str, table: BlackjackTable) -> None:
    """Save table to session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_TABLE] = _serialize_table(table)
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    if SESSION_KEY_CREATED_AT not in session_data:
        session_data[SESSION_KEY_CREATED_AT] = int(time.time())
    await store.set(session_id, session_data)


def _evict(session_id: str) -> None:
    """Forget the cached table and lock of a session the store no longer has."""
    _tables.pop(session_id, None)
    _locks.pop(session_id, None)


async def _get_table(session_id: str) -> BlackjackTable:
    """
    Get the table for a session.

    The store decides whether a session is alive; a cached table whose
    session has expired is evicted and reported as unknown.
    """
    store = await get_session_store()
    session_data = await store.get(session_id)
    if session_data is None or SESSION_KEY_TABLE not in session_data:
        _evict(session_id)
        raise HTTPException(status_code=404, detail="Unknown session")

    if session_id not in _tables:
        _tables[session_id] = _deserialize_table(session_data[SESSION_KEY_TABLE])
    return _tables[session_id]


async def signed_session_id(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> str:
    """Accept only session ids this server signed."""
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=401, detail="Invalid session")
    return session_id


SessionID = Annotated[str, Depends(signed_session_id)]


def _card_to_response(card: Card) -> CardResponse:
    return CardResponse(
        rank=str(card.rank),
        suit=str(card.suit),
        value=card.value,
        is_red=card.suit.is_red,
    )


def _hand_to_response(hand) -> HandResponse:
    """Convert a HandView to HandResponse."""
    return HandResponse(
        cards=[_card_to_response(c) for c in hand.cards],
        value=hand.value,
        stake=hand.stake,
        is_soft=hand.is_soft,
        is_blackjack=hand.is_blackjack,
        is_busted=hand.is_busted,
        is_stood=hand.is_stood,
        is_doubled=hand.is_doubled,
        is_split_hand=hand.is_split_hand,
    )


def _dealer_to_response(dealer) -> DealerResponse:
    """Convert a DealerView, masking the hole card while it is hidden."""
    if not dealer.hole_card_hidden:
        return DealerResponse(
            cards=[_card_to_response(c) for c in dealer.cards],
            value=dealer.value,
            hole_card_hidden=False,
            is_busted=dealer.is_busted,
        )

    cards = [_card_to_response(c) for c in dealer.cards[:1]]
    cards += [
        CardResponse(rank="?", suit="?", value=0, hidden=True)
        for _ in dealer.cards[1:]
    ]
    return DealerResponse(
        cards=cards,
        value=dealer.upcard_value,
        hole_card_hidden=True,
        is_busted=False,
    )


def _table_state_response(table: BlackjackTable) -> TableStateResponse:
    """Convert table state to response."""
    snapshot = table.snapshot()
    return TableStateResponse(
        phase=snapshot.phase.name,
        players=[
            PlayerResponse(
                player_id=p.player_id,
                hands=[_hand_to_response(h) for h in p.hands],
                current_hand_index=p.current_hand_index,
                is_active=p.is_active,
                can_hit=table.can_hit(p.player_id),
                can_stand=table.can_stand(p.player_id),
                can_double=table.can_double(p.player_id),
                can_split=table.can_split(p.player_id),
            )
            for p in snapshot.players
        ],
        dealer=_dealer_to_response(snapshot.dealer),
        current_player_id=snapshot.current_player_id,
        results=[
            HandResultResponse(
                player_id=r.player_id,
                hand_index=r.hand_index,
                value=r.value,
                stake=r.stake,
                outcome=r.outcome.value,
                net=r.net,
            )
            for r in snapshot.results
        ],
        message=snapshot.message,
        cards_remaining=snapshot.cards_remaining,
    )


@router.post("/new")
async def new_table(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> dict[str, str]:
    """Create a new table session, or reset the table of a signed one."""
    if session_id is None:
        session_id = await create_session()
    else:
        session_id = await signed_session_id(session_id)

    async with _table_lock(session_id):
        table = BlackjackTable(rules=_default_rules())
        _tables[session_id] = table
        await _save_table(session_id, table)

    return {"session_id": session_id}


@router.get("/state")
async def get_state(
    session_id: SessionID,
) -> TableStateResponse:
    """Get current table state."""
    table = await _get_table(session_id)
    return _table_state_response(table)


@router.post("/players")
async def add_player(
    session_id: SessionID,
) -> JoinResponse:
    """Seat a new player (dealt in immediately if turns are in progress)."""
    async with _table_lock(session_id):
        table = await _get_table(session_id)
        try:
            player_id = table.add_player()
        finally:
            await _save_table(session_id, table)
        return JoinResponse(player_id=player_id, table=_table_state_response(table))


@router.post("/round")
async def start_round(
    session_id: SessionID,
) -> TableStateResponse:
    """Shuffle and deal a new round."""
    async with _table_lock(session_id):
        table = await _get_table(session_id)
        try:
            started = table.start_round()
        finally:
            await _save_table(session_id, table)
        if not started:
            raise HTTPException(status_code=400, detail=table.last_rejection)
        return _table_state_response(table)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: SessionID,
) -> TableStateResponse:
    """Execute a player action."""
    async with _table_lock(session_id):
        table = await _get_table(session_id)
        try:
            applied = table.act(request.player_id, request.action)
        finally:
            await _save_table(session_id, table)
        if not applied:
            raise HTTPException(status_code=400, detail=table.last_rejection)
        return _table_state_response(table)
