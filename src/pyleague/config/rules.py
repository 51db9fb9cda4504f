"""League rule sets and scoring tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, Mapping


@dataclass(frozen=True)
class RuleSet:
    budget: Decimal
    total_players: int
    starters: int
    substitutes: int
    max_per_real_team: int
    max_transfers_per_round: int

    def __post_init__(self) -> None:
        if not isinstance(self.budget, Decimal):
            object.__setattr__(self, "budget", Decimal(str(self.budget)))
        if self.budget < 0:
            raise ValueError(f"budget must be non-negative, got {self.budget}")
        for name in ("total_players", "starters", "substitutes", "max_per_real_team"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.max_transfers_per_round < 0:
            raise ValueError("max_transfers_per_round must be non-negative")
        if self.starters + self.substitutes != self.total_players:
            raise ValueError(
                f"starters ({self.starters}) + substitutes ({self.substitutes}) "
                f"must equal total_players ({self.total_players})"
            )

    def to_dict(self) -> dict:
        return {
            "budget": str(self.budget),
            "total_players": self.total_players,
            "starters": self.starters,
            "substitutes": self.substitutes,
            "max_per_real_team": self.max_per_real_team,
            "max_transfers_per_round": self.max_transfers_per_round,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "RuleSet":
        return cls(
            budget=Decimal(str(data["budget"])),
            total_players=int(data["total_players"]),  # type: ignore[arg-type]
            starters=int(data["starters"]),  # type: ignore[arg-type]
            substitutes=int(data["substitutes"]),  # type: ignore[arg-type]
            max_per_real_team=int(data["max_per_real_team"]),  # type: ignore[arg-type]
            max_transfers_per_round=int(data["max_transfers_per_round"]),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class ScoringRules:
    """Point values applied to one player's stat line in one match."""

    goal: int = 5
    assist: int = 3
    appearance: int = 1
    yellow_card: int = -1
    red_card: int = -4
    clean_sheet: int = 5
    penalty_save: int = 5
    clean_sheet_positions: FrozenSet[str] = field(default_factory=lambda: frozenset({"GK", "DEF"}))
    captain_multiplier: int = 2
    triple_captain_multiplier: int = 3


DEFAULT_SCORING = ScoringRules()


_RULE_SETS: Dict[str, RuleSet] = {
    "CLASSIC": RuleSet(
        budget=Decimal("100"),
        total_players=12,
        starters=8,
        substitutes=4,
        max_per_real_team=2,
        max_transfers_per_round=2,
    ),
    "FIVE_A_SIDE": RuleSet(
        budget=Decimal("50"),
        total_players=7,
        starters=5,
        substitutes=2,
        max_per_real_team=2,
        max_transfers_per_round=1,
    ),
    "FULL_SQUAD": RuleSet(
        budget=Decimal("100"),
        total_players=15,
        starters=11,
        substitutes=4,
        max_per_real_team=3,
        max_transfers_per_round=2,
    ),
}


def iter_rules() -> Iterable[RuleSet]:
    """Return an iterator of all preset rule sets."""

    return _RULE_SETS.values()


def get_rules(name: str) -> RuleSet:
    """Fetch a preset rule set by name, raising KeyError if missing."""

    key = name.upper()
    if key not in _RULE_SETS:
        raise KeyError(f"No rule set configured for name={name!r}")
    return _RULE_SETS[key]
