"""Initial squad validation and construction."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Sequence, Tuple

from pyleague.config import RuleSet
from pyleague.errors import ErrorCode, OperationResult, RuleViolation
from pyleague.models import Player, RosterSlot


@dataclass(frozen=True)
class Selection:
    player_id: int
    is_starter: bool


@dataclass(frozen=True)
class RosterDraft:
    """A validated squad ready to be persisted as a new fantasy team."""

    roster: Tuple[RosterSlot, ...]
    total_spent: Decimal
    budget_remaining: Decimal


def total_price(players: Iterable[Player]) -> Decimal:
    return sum((player.price for player in players), Decimal("0"))


def real_team_counts(players: Iterable[Player]) -> Counter[int]:
    return Counter(player.real_team_id for player in players)


def validate_selection(
    rules: RuleSet,
    selections: Sequence[Selection],
    catalogue: Mapping[int, Player],
) -> RuleViolation | None:
    """Return the first rule the selection breaks, or ``None`` when valid."""

    if len(selections) != rules.total_players:
        return RuleViolation(
            ErrorCode.ROSTER_SIZE_MISMATCH,
            f"Roster must contain exactly {rules.total_players} players, got {len(selections)}",
        )
    seen: set[int] = set()
    for selection in selections:
        if selection.player_id in seen:
            return RuleViolation(
                ErrorCode.DUPLICATE_PLAYER,
                f"Player {selection.player_id} selected more than once",
            )
        seen.add(selection.player_id)
    missing = [selection.player_id for selection in selections if selection.player_id not in catalogue]
    if missing:
        return RuleViolation(
            ErrorCode.UNKNOWN_PLAYER,
            f"Players not available in this league: {', '.join(str(pid) for pid in missing)}",
        )

    starters = sum(1 for selection in selections if selection.is_starter)
    substitutes = len(selections) - starters
    if starters != rules.starters or substitutes != rules.substitutes:
        return RuleViolation(
            ErrorCode.STARTER_COUNT_MISMATCH,
            f"Roster needs {rules.starters} starters and {rules.substitutes} substitutes, "
            f"got {starters} and {substitutes}",
        )

    players = [catalogue[selection.player_id] for selection in selections]
    for real_team_id, count in sorted(real_team_counts(players).items()):
        if count > rules.max_per_real_team:
            return RuleViolation(
                ErrorCode.REAL_TEAM_CAP_EXCEEDED,
                f"At most {rules.max_per_real_team} players allowed from real team {real_team_id}, got {count}",
            )

    spent = total_price(players)
    if spent > rules.budget:
        return RuleViolation(
            ErrorCode.INSUFFICIENT_BUDGET,
            f"Roster costs {spent} which exceeds the budget of {rules.budget}",
        )
    return None


def build_roster(
    rules: RuleSet,
    selections: Sequence[Selection],
    catalogue: Mapping[int, Player],
) -> OperationResult[RosterDraft]:
    violation = validate_selection(rules, selections, catalogue)
    if violation is not None:
        return OperationResult.from_violation(violation)

    spent = total_price(catalogue[selection.player_id] for selection in selections)
    roster = tuple(
        RosterSlot(slot_index=index, player_id=selection.player_id, is_starter=selection.is_starter)
        for index, selection in enumerate(selections)
    )
    return OperationResult.success(
        RosterDraft(roster=roster, total_spent=spent, budget_remaining=rules.budget - spent)
    )
