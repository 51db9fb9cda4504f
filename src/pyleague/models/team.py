"""Fantasy team, round and scoring records owned by the core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pyleague.config import RuleSet


class CaptainType(str, Enum):
    NONE = "NONE"
    CAPTAIN = "CAPTAIN"
    TRIPLE_CAPTAIN = "TRIPLE_CAPTAIN"


@dataclass(frozen=True)
class League:
    league_id: int
    name: str
    rules: RuleSet
    created_at: datetime


@dataclass(frozen=True)
class RosterSlot:
    slot_index: int
    player_id: int
    is_starter: bool


@dataclass(frozen=True)
class CaptainDesignation:
    slot_index: int
    captain_type: CaptainType


@dataclass(frozen=True)
class FantasyTeam:
    """A participant's squad in one league.

    The captain is held as a single team-level reference so a roster can
    never carry two designations at once.
    """

    team_id: int
    league_id: int
    owner_id: int
    name: str
    budget_remaining: Decimal
    roster: Tuple[RosterSlot, ...]
    total_points: int = 0
    captain: Optional[CaptainDesignation] = None
    triple_captain_used: bool = False
    created_at: Optional[datetime] = None
    version: int = 0

    def slot(self, slot_index: int) -> Optional[RosterSlot]:
        for slot in self.roster:
            if slot.slot_index == slot_index:
                return slot
        return None

    def slot_for_player(self, player_id: int) -> Optional[RosterSlot]:
        for slot in self.roster:
            if slot.player_id == player_id:
                return slot
        return None

    def captain_type_of(self, slot_index: int) -> CaptainType:
        if self.captain is not None and self.captain.slot_index == slot_index:
            return self.captain.captain_type
        return CaptainType.NONE

    @property
    def player_ids(self) -> Tuple[int, ...]:
        return tuple(slot.player_id for slot in self.roster)

    @property
    def starters(self) -> Tuple[RosterSlot, ...]:
        return tuple(slot for slot in self.roster if slot.is_starter)


@dataclass(frozen=True)
class Round:
    round_id: int
    league_id: int
    number: int
    name: str
    start_date: datetime
    end_date: datetime
    lock_time: Optional[datetime] = None
    transfers_open: bool = False
    is_completed: bool = False
    opened_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int = 0


@dataclass(frozen=True)
class Transfer:
    transfer_id: int
    fantasy_team_id: int
    round_id: int
    player_out_id: int
    player_in_id: int
    created_at: datetime


@dataclass(frozen=True)
class PlayerRoundScore:
    fantasy_team_id: int
    round_id: int
    player_id: int
    base_points: int
    multiplier: int
    points: int


@dataclass(frozen=True)
class LineupEntry:
    """One slot of a lineup as it stood when the round was scored."""

    fantasy_team_id: int
    round_id: int
    slot_index: int
    player_id: int
    position: str
    real_team_id: int
    is_starter: bool
    captain_type: CaptainType


@dataclass(frozen=True)
class TeamRoundPoints:
    fantasy_team_id: int
    round_id: int
    points: int
    rank: Optional[int] = None


@dataclass(frozen=True)
class TeamScoreCard:
    """Everything the scoring engine produces for one team in one round."""

    fantasy_team_id: int
    round_id: int
    scores: Tuple[PlayerRoundScore, ...]
    lineup: Tuple[LineupEntry, ...]
    missing_player_ids: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def round_points(self) -> int:
        return sum(score.points for score in self.scores)
