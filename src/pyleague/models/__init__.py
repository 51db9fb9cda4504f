"""Domain records shared across the roster, round and scoring layers."""

from .player import MatchStat, Player, Position
from .team import (
    CaptainDesignation,
    CaptainType,
    FantasyTeam,
    League,
    LineupEntry,
    PlayerRoundScore,
    RosterSlot,
    Round,
    TeamRoundPoints,
    TeamScoreCard,
    Transfer,
)

__all__ = [
    "CaptainDesignation",
    "CaptainType",
    "FantasyTeam",
    "League",
    "LineupEntry",
    "MatchStat",
    "Player",
    "PlayerRoundScore",
    "Position",
    "RosterSlot",
    "Round",
    "TeamRoundPoints",
    "TeamScoreCard",
    "Transfer",
]
