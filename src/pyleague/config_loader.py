"""Persist and load league profiles for the CLI."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from pyleague.config import RuleSet, get_rules


@dataclass
class LeagueProfile:
    name: str
    rules: RuleSet

    @classmethod
    def load(cls, path: Path) -> "LeagueProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        rules_data = data.get("rules")
        if isinstance(rules_data, str):
            rules = get_rules(rules_data)
        elif isinstance(rules_data, dict):
            rules = RuleSet.from_dict(rules_data)
        else:
            rules = get_rules("classic")
        return cls(name=data.get("name", path.stem), rules=rules)

    def save(self, path: Path) -> None:
        payload = {
            "name": self.name,
            "rules": self.rules.to_dict(),
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
