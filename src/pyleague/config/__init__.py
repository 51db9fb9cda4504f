"""Configuration helpers for league rules and scoring."""

from .rules import DEFAULT_SCORING, RuleSet, ScoringRules, get_rules, iter_rules

__all__ = [
    "DEFAULT_SCORING",
    "RuleSet",
    "ScoringRules",
    "get_rules",
    "iter_rules",
]
