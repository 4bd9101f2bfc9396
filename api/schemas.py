"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


class ActionRequest(BaseModel):
    """Request for player action."""

    player_id: int = Field(..., ge=1, le=7, description="Acting player")
    action: Literal["hit", "stand", "double", "split"]


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int
    is_red: bool = False
    hidden: bool = False


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    value: int
    stake: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    is_stood: bool
    is_doubled: bool
    is_split_hand: bool


class PlayerResponse(BaseModel):
    """Seat representation."""

    player_id: int
    hands: list[HandResponse]
    current_hand_index: int
    is_active: bool
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool


class DealerResponse(BaseModel):
    """Dealer hand as players may see it."""

    cards: list[CardResponse]
    value: int
    hole_card_hidden: bool
    is_busted: bool


class HandResultResponse(BaseModel):
    """Resolved outcome of one player hand."""

    player_id: int
    hand_index: int
    value: int
    stake: int
    outcome: Literal["win", "loss", "push"]
    net: int


class TableStateResponse(BaseModel):
    """Current table state."""

    phase: str
    players: list[PlayerResponse]
    dealer: DealerResponse
    current_player_id: int | None
    results: list[HandResultResponse]
    message: str
    cards_remaining: int


class JoinResponse(BaseModel):
    """Result of seating a player."""

    player_id: int
    table: TableStateResponse
