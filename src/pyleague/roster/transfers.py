"""Validation of a single player-out/player-in swap."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Mapping, Optional

from pyleague.config import RuleSet
from pyleague.errors import ErrorCode, OperationResult
from pyleague.models import FantasyTeam, Player, RosterSlot, Round
from pyleague.roster.policy import AnyPositionPolicy, PositionPolicy


@dataclass(frozen=True)
class TransferPlan:
    """The mutations a validated transfer will apply, computed up front."""

    fantasy_team_id: int
    round_id: int
    slot_index: int
    player_out_id: int
    player_in_id: int
    budget_before: Decimal
    budget_after: Decimal
    transfers_made: int
    max_transfers: int

    @property
    def remaining_after(self) -> int:
        return max(0, self.max_transfers - self.transfers_made - 1)


def window_is_open(round_: Optional[Round]) -> bool:
    return round_ is not None and round_.transfers_open and not round_.is_completed


def validate_transfer(
    *,
    rules: RuleSet,
    team: FantasyTeam,
    round_: Optional[Round],
    player_out_id: int,
    player_in_id: int,
    catalogue: Mapping[int, Player],
    transfers_made: int,
    policy: PositionPolicy | None = None,
) -> OperationResult[TransferPlan]:
    """Check every transfer precondition in order and stop at the first failure."""

    if round_ is None or not window_is_open(round_):
        return OperationResult.failure(
            ErrorCode.TRANSFER_WINDOW_CLOSED,
            "Transfers are closed for this round",
        )

    outgoing_slot = team.slot_for_player(player_out_id)
    if outgoing_slot is None:
        return OperationResult.failure(
            ErrorCode.PLAYER_NOT_ON_ROSTER,
            f"Player {player_out_id} is not on this roster",
        )
    if team.slot_for_player(player_in_id) is not None:
        return OperationResult.failure(
            ErrorCode.PLAYER_ALREADY_OWNED,
            f"Player {player_in_id} is already on this roster",
        )
    player_in = catalogue.get(player_in_id)
    if player_in is None:
        return OperationResult.failure(
            ErrorCode.UNKNOWN_PLAYER,
            f"Player {player_in_id} is not available in this league",
        )
    player_out = catalogue.get(player_out_id)
    if player_out is None:
        raise KeyError(f"Rostered player {player_out_id} missing from league catalogue")

    policy = policy or AnyPositionPolicy()
    if not policy.allows(player_out.position, player_in.position):
        return OperationResult.failure(
            ErrorCode.POSITION_MISMATCH,
            f"Player {player_in_id} ({player_in.position.value}) cannot replace "
            f"player {player_out_id} ({player_out.position.value})",
        )

    budget_after = team.budget_remaining + player_out.price - player_in.price
    if budget_after < 0:
        return OperationResult.failure(
            ErrorCode.INSUFFICIENT_BUDGET,
            f"Insufficient budget: available {team.budget_remaining + player_out.price}, "
            f"required {player_in.price}",
        )

    same_team = sum(
        1
        for slot in team.roster
        if slot.player_id != player_out_id
        and slot.player_id in catalogue
        and catalogue[slot.player_id].real_team_id == player_in.real_team_id
    )
    if same_team + 1 > rules.max_per_real_team:
        return OperationResult.failure(
            ErrorCode.REAL_TEAM_CAP_EXCEEDED,
            f"Roster already holds {same_team} players from real team {player_in.real_team_id}",
        )

    if transfers_made >= rules.max_transfers_per_round:
        return OperationResult.failure(
            ErrorCode.TRANSFER_LIMIT_EXCEEDED,
            f"Transfer limit of {rules.max_transfers_per_round} reached for this round",
        )

    return OperationResult.success(
        TransferPlan(
            fantasy_team_id=team.team_id,
            round_id=round_.round_id,
            slot_index=outgoing_slot.slot_index,
            player_out_id=player_out_id,
            player_in_id=player_in_id,
            budget_before=team.budget_remaining,
            budget_after=budget_after,
            transfers_made=transfers_made,
            max_transfers=rules.max_transfers_per_round,
        )
    )


def apply_transfer(team: FantasyTeam, plan: TransferPlan) -> FantasyTeam:
    """Return the team with the planned swap applied; role and captain stay on the slot."""

    roster = tuple(
        RosterSlot(slot.slot_index, plan.player_in_id, slot.is_starter)
        if slot.slot_index == plan.slot_index
        else slot
        for slot in team.roster
    )
    return replace(team, roster=roster, budget_remaining=plan.budget_after)


def remaining_transfers(rules: RuleSet, round_: Optional[Round], transfers_made: int) -> int:
    if not window_is_open(round_):
        return 0
    return max(0, rules.max_transfers_per_round - transfers_made)
