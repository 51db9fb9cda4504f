"""Pydantic models for API I/O."""

from .league import (
    HeadToHeadResponse,
    HeadToHeadRoundResponse,
    LeaderboardResponse,
    LeaderboardRowResponse,
    LeagueStatsResponse,
    PlayerCountResponse,
    RoundPointsResponse,
    TeamRankResponse,
)
from .round import CompletionResponse, RoundResponse
from .team import (
    CaptainRequest,
    CreateTeamRequest,
    LineupEntryResponse,
    RemainingTransfersResponse,
    RosterSlotResponse,
    RoundHistoryResponse,
    SelectionPayload,
    SwapRequest,
    TeamResponse,
    TransferRequest,
    TransferResponse,
)

__all__ = [
    "CaptainRequest",
    "CompletionResponse",
    "CreateTeamRequest",
    "HeadToHeadResponse",
    "HeadToHeadRoundResponse",
    "LeaderboardResponse",
    "LeaderboardRowResponse",
    "LeagueStatsResponse",
    "LineupEntryResponse",
    "PlayerCountResponse",
    "RemainingTransfersResponse",
    "RosterSlotResponse",
    "RoundHistoryResponse",
    "RoundPointsResponse",
    "RoundResponse",
    "SelectionPayload",
    "SwapRequest",
    "TeamRankResponse",
    "TeamResponse",
    "TransferRequest",
    "TransferResponse",
]
