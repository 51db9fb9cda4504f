"""Deterministic league rankings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from pyleague.models import FantasyTeam


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    fantasy_team_id: int
    name: str
    owner_id: int
    points: int
    total_points: int


@dataclass(frozen=True)
class HeadToHeadRound:
    round_id: int
    first_points: int
    second_points: int

    @property
    def winner(self) -> int | None:
        """1 or 2 for the winning side, ``None`` for a draw."""

        if self.first_points > self.second_points:
            return 1
        if self.second_points > self.first_points:
            return 2
        return None


@dataclass(frozen=True)
class HeadToHead:
    first_team_id: int
    second_team_id: int
    first_wins: int
    second_wins: int
    draws: int
    rounds: tuple[HeadToHeadRound, ...]


def _tie_break(team: FantasyTeam) -> tuple[datetime, int]:
    return (team.created_at or _EPOCH, team.team_id)


def _rank(teams: Sequence[FantasyTeam], points: Mapping[int, int]) -> list[LeaderboardRow]:
    ordered = sorted(teams, key=lambda team: (-points[team.team_id], *_tie_break(team)))
    return [
        LeaderboardRow(
            rank=index + 1,
            fantasy_team_id=team.team_id,
            name=team.name,
            owner_id=team.owner_id,
            points=points[team.team_id],
            total_points=team.total_points,
        )
        for index, team in enumerate(ordered)
    ]


def rank_overall(teams: Iterable[FantasyTeam]) -> list[LeaderboardRow]:
    """Order by cumulative points, ties going to the earlier-created team."""

    team_list = list(teams)
    return _rank(team_list, {team.team_id: team.total_points for team in team_list})


def rank_round(teams: Iterable[FantasyTeam], round_points: Mapping[int, int]) -> list[LeaderboardRow]:
    """Order by one round's points; teams without a score for the round are left out."""

    scored = [team for team in teams if team.team_id in round_points]
    return _rank(scored, round_points)


def rank_of(rows: Sequence[LeaderboardRow], fantasy_team_id: int) -> int | None:
    for row in rows:
        if row.fantasy_team_id == fantasy_team_id:
            return row.rank
    return None


def head_to_head(
    first_team_id: int,
    first_points: Mapping[int, int],
    second_team_id: int,
    second_points: Mapping[int, int],
) -> HeadToHead:
    shared = sorted(set(first_points).intersection(second_points))
    rounds = tuple(HeadToHeadRound(rid, first_points[rid], second_points[rid]) for rid in shared)
    return HeadToHead(
        first_team_id=first_team_id,
        second_team_id=second_team_id,
        first_wins=sum(1 for item in rounds if item.winner == 1),
        second_wins=sum(1 for item in rounds if item.winner == 2),
        draws=sum(1 for item in rounds if item.winner is None),
        rounds=rounds,
    )
