"""Round scoring and leaderboard aggregation."""

from .engine import match_points, multiplier_for, player_totals, score_team
from .leaderboard import (
    HeadToHead,
    HeadToHeadRound,
    LeaderboardRow,
    head_to_head,
    rank_of,
    rank_overall,
    rank_round,
)

__all__ = [
    "HeadToHead",
    "HeadToHeadRound",
    "LeaderboardRow",
    "head_to_head",
    "match_points",
    "multiplier_for",
    "player_totals",
    "rank_of",
    "rank_overall",
    "rank_round",
    "score_team",
]
