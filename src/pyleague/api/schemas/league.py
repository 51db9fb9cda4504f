from __future__ import annotations

from typing import List

from pydantic import BaseModel


class LeaderboardRowResponse(BaseModel):
    rank: int
    fantasy_team_id: int
    name: str
    owner_id: int
    points: int
    total_points: int


class LeaderboardResponse(BaseModel):
    league_id: int
    round_id: int | None = None
    rows: List[LeaderboardRowResponse]


class PlayerCountResponse(BaseModel):
    player_id: int
    value: int


class LeagueStatsResponse(BaseModel):
    league_id: int
    team_count: int
    transfer_count: int
    average_total_points: float
    top_scorers: List[PlayerCountResponse]
    most_transferred_in: List[PlayerCountResponse]


class HeadToHeadRoundResponse(BaseModel):
    round_id: int
    first_points: int
    second_points: int
    winner: int | None


class HeadToHeadResponse(BaseModel):
    first_team_id: int
    second_team_id: int
    first_wins: int
    second_wins: int
    draws: int
    rounds: List[HeadToHeadRoundResponse]


class RoundPointsResponse(BaseModel):
    round_id: int
    points: int
    rank: int | None


class TeamRankResponse(BaseModel):
    team_id: int
    league_id: int
    rank: int | None
    total_teams: int
    total_points: int
    recent: List[RoundPointsResponse]
