"""Pluggable position rules for swaps and transfers."""

from __future__ import annotations

from typing import Protocol

from pyleague.models import Position


class PositionPolicy(Protocol):
    name: str

    def allows(self, first: Position, second: Position) -> bool:
        ...


class AnyPositionPolicy:
    """Roles and positions are independent; any pairing is accepted."""

    name = "any"

    def allows(self, first: Position, second: Position) -> bool:
        return True


class SamePositionPolicy:
    name = "same"

    def allows(self, first: Position, second: Position) -> bool:
        return first == second


_POLICIES = {
    AnyPositionPolicy.name: AnyPositionPolicy,
    SamePositionPolicy.name: SamePositionPolicy,
}


def get_policy(name: str) -> PositionPolicy:
    key = name.lower()
    if key not in _POLICIES:
        raise KeyError(f"Unknown position policy {name!r}")
    return _POLICIES[key]()
