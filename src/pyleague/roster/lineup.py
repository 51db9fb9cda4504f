"""Starter/substitute swaps and captain designation on an existing roster."""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping, Optional

from pyleague.errors import ErrorCode, OperationResult
from pyleague.models import CaptainDesignation, CaptainType, FantasyTeam, Player, RosterSlot, Round
from pyleague.roster.policy import AnyPositionPolicy, PositionPolicy
from pyleague.roster.transfers import window_is_open


def swap_roles(
    team: FantasyTeam,
    round_: Optional[Round],
    first_slot: int,
    second_slot: int,
    catalogue: Mapping[int, Player],
    policy: PositionPolicy | None = None,
) -> OperationResult[FantasyTeam]:
    """Exchange the starter flag of two slots holding opposite roles.

    A starter/substitute pair keeps both counts intact, so no count check is
    needed beyond requiring opposite roles.
    """

    if not window_is_open(round_):
        return OperationResult.failure(ErrorCode.LINEUP_LOCKED, "Lineup is locked for this round")

    first = team.slot(first_slot)
    second = team.slot(second_slot)
    if first is None or second is None:
        missing = first_slot if first is None else second_slot
        return OperationResult.failure(ErrorCode.UNKNOWN_SLOT, f"Slot {missing} does not exist on this roster")
    if first.is_starter == second.is_starter:
        return OperationResult.failure(
            ErrorCode.INVALID_SWAP_PAIR,
            "A role swap needs one starter and one substitute",
        )

    policy = policy or AnyPositionPolicy()
    first_player = catalogue.get(first.player_id)
    second_player = catalogue.get(second.player_id)
    if first_player is not None and second_player is not None:
        if not policy.allows(first_player.position, second_player.position):
            return OperationResult.failure(
                ErrorCode.POSITION_MISMATCH,
                f"Position policy '{policy.name}' rejects swapping "
                f"{first_player.position.value} with {second_player.position.value}",
            )

    roster = tuple(
        RosterSlot(slot.slot_index, slot.player_id, not slot.is_starter)
        if slot.slot_index in (first_slot, second_slot)
        else slot
        for slot in team.roster
    )
    return OperationResult.success(replace(team, roster=roster))


def designate_captain(
    team: FantasyTeam,
    round_: Optional[Round],
    slot_index: int,
    captain_type: CaptainType,
) -> OperationResult[FantasyTeam]:
    """Move the team's single captain reference to ``slot_index``.

    ``CaptainType.NONE`` clears the designation.
    """

    if not window_is_open(round_):
        return OperationResult.failure(ErrorCode.LINEUP_LOCKED, "Lineup is locked for this round")

    if captain_type is CaptainType.NONE:
        return OperationResult.success(replace(team, captain=None))

    slot = team.slot(slot_index)
    if slot is None:
        return OperationResult.failure(ErrorCode.UNKNOWN_SLOT, f"Slot {slot_index} does not exist on this roster")
    if not slot.is_starter:
        return OperationResult.failure(
            ErrorCode.CAPTAIN_NOT_STARTER,
            f"Player {slot.player_id} is not in the starting lineup",
        )

    already_triple = team.captain_type_of(slot_index) is CaptainType.TRIPLE_CAPTAIN
    if captain_type is CaptainType.TRIPLE_CAPTAIN and team.triple_captain_used and not already_triple:
        return OperationResult.failure(
            ErrorCode.TRIPLE_CAPTAIN_USED,
            "Triple captain has already been used this season",
        )

    return OperationResult.success(
        replace(
            team,
            captain=CaptainDesignation(slot_index, captain_type),
            triple_captain_used=team.triple_captain_used or captain_type is CaptainType.TRIPLE_CAPTAIN,
        )
    )
