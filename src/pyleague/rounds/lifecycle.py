"""Round state machine: scheduled, open, locked, completed."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Optional

from pyleague.errors import ErrorCode, OperationResult
from pyleague.models import Round


logger = logging.getLogger(__name__)

_LOCK_LEAD_ENV = "PYLEAGUE_LOCK_LEAD_HOURS"
_LOCK_LEAD_DEFAULT = 2.0


class RoundState(str, Enum):
    SCHEDULED = "SCHEDULED"
    OPEN = "OPEN"
    LOCKED = "LOCKED"
    COMPLETED = "COMPLETED"


def round_state(round_: Round) -> RoundState:
    """Derive the state from the two flags; completion wins over ``transfers_open``."""

    if round_.is_completed:
        return RoundState.COMPLETED
    if round_.transfers_open:
        return RoundState.OPEN
    if round_.opened_at is None:
        return RoundState.SCHEDULED
    return RoundState.LOCKED


def _completed_failure(round_: Round) -> OperationResult[Round]:
    return OperationResult.failure(
        ErrorCode.ROUND_ALREADY_COMPLETED,
        f"Round {round_.number} is already completed",
    )


def pending_earlier_round(round_: Round, rounds: Iterable[Round]) -> Optional[Round]:
    """Lowest-numbered round of the same league that comes before ``round_`` and is not completed."""

    earlier = [
        other
        for other in rounds
        if other.league_id == round_.league_id and other.number < round_.number and not other.is_completed
    ]
    return min(earlier, key=lambda item: (item.number, item.round_id), default=None)


def open_transfers(
    round_: Round,
    *,
    now: Optional[datetime] = None,
    rounds: Iterable[Round] = (),
) -> OperationResult[Round]:
    """Open the window. Rosters stay frozen until every earlier round in ``rounds`` is completed."""

    if round_.is_completed:
        return _completed_failure(round_)
    if round_.transfers_open:
        return OperationResult.success(round_)
    pending = pending_earlier_round(round_, rounds)
    if pending is not None:
        return OperationResult.failure(
            ErrorCode.PREVIOUS_ROUND_INCOMPLETE,
            f"Round {pending.number} must be completed before round {round_.number} opens",
        )
    opened_at = round_.opened_at or now or datetime.now(timezone.utc)
    return OperationResult.success(replace(round_, transfers_open=True, opened_at=opened_at))


def close_transfers(round_: Round) -> OperationResult[Round]:
    if round_.is_completed:
        return _completed_failure(round_)
    return OperationResult.success(replace(round_, transfers_open=False))


def check_completable(round_: Round) -> OperationResult[Round]:
    """Validate that ``complete`` may run; the store performs the actual compare-and-set."""

    if round_.is_completed:
        return _completed_failure(round_)
    return OperationResult.success(round_)


def mark_completed(round_: Round, *, now: Optional[datetime] = None) -> Round:
    return replace(
        round_,
        is_completed=True,
        transfers_open=False,
        completed_at=now or datetime.now(timezone.utc),
    )


def lock_lead_time() -> timedelta:
    raw = os.getenv(_LOCK_LEAD_ENV)
    if raw is None:
        return timedelta(hours=_LOCK_LEAD_DEFAULT)
    try:
        hours = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.1f", _LOCK_LEAD_ENV, raw, _LOCK_LEAD_DEFAULT)
        return timedelta(hours=_LOCK_LEAD_DEFAULT)
    return timedelta(hours=max(0.0, hours))


def default_lock_time(start_date: datetime) -> datetime:
    """Lock time shown to clients when the admin does not set one."""

    return start_date - lock_lead_time()


def current_round(rounds: Iterable[Round]) -> Optional[Round]:
    """Pick the open round with the lowest number, else the next unfinished one."""

    ordered = sorted(rounds, key=lambda item: (item.number, item.round_id))
    for candidate in ordered:
        if round_state(candidate) is RoundState.OPEN:
            return candidate
    for candidate in ordered:
        if not candidate.is_completed:
            return candidate
    return None


def seconds_until_lock(round_: Round, *, now: Optional[datetime] = None) -> Optional[float]:
    """Countdown for display only; it never changes ``transfers_open``."""

    if round_.lock_time is None:
        return None
    now = now or datetime.now(timezone.utc)
    return max(0.0, (round_.lock_time - now).total_seconds())
