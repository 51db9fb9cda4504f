"""Shared builders for league fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable

from pyleague.config import RuleSet
from pyleague.models import FantasyTeam, Player, Position, RosterSlot, Round
from pyleague.persistence import LeagueStore
from pyleague.roster import Selection


SMALL_RULES = RuleSet(
    budget=Decimal("30"),
    total_players=4,
    starters=3,
    substitutes=1,
    max_per_real_team=2,
    max_transfers_per_round=2,
)

_POSITIONS = [Position.GK, Position.DEF, Position.MID, Position.FWD]


def player(player_id: int, price: str, *, position: Position = Position.MID, real_team_id: int | None = None) -> Player:
    return Player(
        player_id=player_id,
        name=f"Player {player_id}",
        position=position,
        real_team_id=real_team_id if real_team_id is not None else player_id,
        price=Decimal(price),
    )


def catalogue_of(players: Iterable[Player]) -> dict[int, Player]:
    return {item.player_id: item for item in players}


def make_team(
    player_ids: list[int],
    *,
    budget: str = "10",
    starters: int = 3,
    team_id: int = 1,
    created_at: datetime | None = None,
) -> FantasyTeam:
    roster = tuple(
        RosterSlot(slot_index=index, player_id=pid, is_starter=index < starters)
        for index, pid in enumerate(player_ids)
    )
    return FantasyTeam(
        team_id=team_id,
        league_id=1,
        owner_id=team_id,
        name=f"Team {team_id}",
        budget_remaining=Decimal(budget),
        roster=roster,
        created_at=created_at,
    )


def make_round(*, transfers_open: bool = True, is_completed: bool = False, opened: bool = True, number: int = 1) -> Round:
    start = datetime(2026, 3, 1, 15, 0, tzinfo=timezone.utc)
    return Round(
        round_id=number,
        league_id=1,
        number=number,
        name=f"Round {number}",
        start_date=start,
        end_date=start + timedelta(days=2),
        transfers_open=transfers_open,
        is_completed=is_completed,
        opened_at=start - timedelta(days=3) if opened or transfers_open else None,
    )


def seed_league(store: LeagueStore, *, rules: RuleSet = SMALL_RULES, players: int = 10, price: str = "7"):
    """Create a league whose players come two per real team."""

    league = store.create_league(name="Test League", rules=rules)
    pool = [
        store.add_player(
            league_id=league.league_id,
            name=f"Player {index}",
            position=_POSITIONS[index % len(_POSITIONS)],
            real_team_id=index // 2 + 1,
            price=price,
        )
        for index in range(players)
    ]
    return league, pool


def selections_for(pool: list[Player], *, starters: int = 3, size: int = 4) -> list[Selection]:
    return [Selection(item.player_id, index < starters) for index, item in enumerate(pool[:size])]


def add_round(store: LeagueStore, league_id: int, number: int = 1) -> Round:
    start = datetime(2026, 3, 1, 15, 0, tzinfo=timezone.utc) + timedelta(days=7 * (number - 1))
    return store.create_round(
        league_id=league_id,
        number=number,
        name=f"Round {number}",
        start_date=start,
        end_date=start + timedelta(days=2),
    )
