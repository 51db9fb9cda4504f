"""Round lifecycle transitions."""

from .lifecycle import (
    RoundState,
    check_completable,
    close_transfers,
    current_round,
    default_lock_time,
    mark_completed,
    open_transfers,
    pending_earlier_round,
    round_state,
    seconds_until_lock,
)

__all__ = [
    "RoundState",
    "check_completable",
    "close_transfers",
    "current_round",
    "default_lock_time",
    "mark_completed",
    "open_transfers",
    "pending_earlier_round",
    "round_state",
    "seconds_until_lock",
]
