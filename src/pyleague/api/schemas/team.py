from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal

from pydantic import BaseModel, Field


class SelectionPayload(BaseModel):
    player_id: int
    is_starter: bool


class CreateTeamRequest(BaseModel):
    league_id: int
    owner_id: int
    name: str = Field(..., min_length=1, max_length=100)
    players: List[SelectionPayload]


class RosterSlotResponse(BaseModel):
    slot_index: int
    player_id: int
    name: str
    position: str
    real_team_id: int
    price: Decimal
    is_starter: bool
    captain_type: str


class TeamResponse(BaseModel):
    team_id: int
    league_id: int
    owner_id: int
    name: str
    budget_remaining: Decimal
    total_points: int
    triple_captain_used: bool
    round_id: int | None = None
    remaining_transfers: int = 0
    roster: List[RosterSlotResponse]


class TransferRequest(BaseModel):
    player_out_id: int
    player_in_id: int
    round_id: int | None = None


class TransferResponse(BaseModel):
    transfer_id: int
    fantasy_team_id: int
    round_id: int
    player_out_id: int
    player_in_id: int
    created_at: datetime


class RemainingTransfersResponse(BaseModel):
    team_id: int
    round_id: int | None
    remaining: int


class SwapRequest(BaseModel):
    first_slot: int
    second_slot: int
    round_id: int | None = None


class CaptainRequest(BaseModel):
    slot_index: int
    captain_type: Literal["NONE", "CAPTAIN", "TRIPLE_CAPTAIN"] = "CAPTAIN"
    round_id: int | None = None


class LineupEntryResponse(BaseModel):
    slot_index: int
    player_id: int
    position: str
    real_team_id: int
    is_starter: bool
    captain_type: str
    base_points: int | None = None
    multiplier: int | None = None
    points: int | None = None


class RoundHistoryResponse(BaseModel):
    round_id: int
    round_number: int
    points: int
    rank: int | None
    lineup: List[LineupEntryResponse]
