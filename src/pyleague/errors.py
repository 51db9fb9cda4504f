"""Rule violations returned by the roster, lineup and round operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    STATE = "state"
    TRANSIENT = "transient"


class ErrorCode(str, Enum):
    INSUFFICIENT_BUDGET = "INSUFFICIENT_BUDGET"
    ROSTER_SIZE_MISMATCH = "ROSTER_SIZE_MISMATCH"
    STARTER_COUNT_MISMATCH = "STARTER_COUNT_MISMATCH"
    REAL_TEAM_CAP_EXCEEDED = "REAL_TEAM_CAP_EXCEEDED"
    DUPLICATE_PLAYER = "DUPLICATE_PLAYER"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    TEAM_ALREADY_EXISTS = "TEAM_ALREADY_EXISTS"
    TRANSFER_WINDOW_CLOSED = "TRANSFER_WINDOW_CLOSED"
    PLAYER_NOT_ON_ROSTER = "PLAYER_NOT_ON_ROSTER"
    PLAYER_ALREADY_OWNED = "PLAYER_ALREADY_OWNED"
    POSITION_MISMATCH = "POSITION_MISMATCH"
    TRANSFER_LIMIT_EXCEEDED = "TRANSFER_LIMIT_EXCEEDED"
    UNKNOWN_SLOT = "UNKNOWN_SLOT"
    INVALID_SWAP_PAIR = "INVALID_SWAP_PAIR"
    CAPTAIN_NOT_STARTER = "CAPTAIN_NOT_STARTER"
    TRIPLE_CAPTAIN_USED = "TRIPLE_CAPTAIN_USED"
    LINEUP_LOCKED = "LINEUP_LOCKED"
    ROUND_ALREADY_COMPLETED = "ROUND_ALREADY_COMPLETED"
    PREVIOUS_ROUND_INCOMPLETE = "PREVIOUS_ROUND_INCOMPLETE"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    @property
    def kind(self) -> ErrorKind:
        if self in _STATE_CODES:
            return ErrorKind.STATE
        if self is ErrorCode.CONCURRENT_MODIFICATION:
            return ErrorKind.TRANSIENT
        return ErrorKind.VALIDATION


_STATE_CODES = frozenset(
    {
        ErrorCode.LINEUP_LOCKED,
        ErrorCode.ROUND_ALREADY_COMPLETED,
        ErrorCode.PREVIOUS_ROUND_INCOMPLETE,
    }
)


@dataclass(frozen=True)
class RuleViolation:
    code: ErrorCode
    message: str

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "kind": self.kind.value, "message": self.message}


T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Either a value or the first rule the request violated."""

    value: Optional[T] = None
    error: Optional[RuleViolation] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "OperationResult[T]":
        return cls(error=RuleViolation(code, message))

    @classmethod
    def from_violation(cls, violation: RuleViolation) -> "OperationResult[T]":
        return cls(error=violation)


class ConcurrentModification(RuntimeError):
    """Raised by the store when a compare-and-set on a row version fails."""
