"""Roster construction, transfers and lineup edits."""

from .builder import RosterDraft, Selection, build_roster, validate_selection
from .lineup import designate_captain, swap_roles
from .policy import AnyPositionPolicy, PositionPolicy, SamePositionPolicy, get_policy
from .transfers import TransferPlan, apply_transfer, remaining_transfers, validate_transfer, window_is_open

__all__ = [
    "AnyPositionPolicy",
    "PositionPolicy",
    "RosterDraft",
    "SamePositionPolicy",
    "Selection",
    "TransferPlan",
    "apply_transfer",
    "build_roster",
    "designate_captain",
    "get_policy",
    "remaining_transfers",
    "swap_roles",
    "validate_selection",
    "validate_transfer",
    "window_is_open",
]
