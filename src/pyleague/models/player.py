"""Canonical player and match statistic models fed in by collaborators."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Position(str, Enum):
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    FWD = "FWD"


class Player(BaseModel):
    """Real-world player available for selection in one league."""

    player_id: int
    name: str = ""
    position: Position
    real_team_id: int
    price: Decimal = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


class MatchStat(BaseModel):
    """Raw counters for one player in one real match."""

    player_id: int
    match_id: int
    round_id: int
    goals: int = Field(default=0, ge=0)
    assists: int = Field(default=0, ge=0)
    yellow_cards: int = Field(default=0, ge=0)
    red_cards: int = Field(default=0, ge=0)
    clean_sheet: bool = False
    penalty_saves: int = Field(default=0, ge=0)
    minutes_played: int = Field(default=0, ge=0)
    bonus_points: int = 0

    model_config = ConfigDict(frozen=True)
