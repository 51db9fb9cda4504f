from decimal import Decimal

import pytest

from pyleague.config import DEFAULT_SCORING, RuleSet, get_rules, iter_rules


def test_get_rules_is_case_insensitive():
    rules = get_rules("classic")
    assert rules is get_rules("CLASSIC")
    assert rules.budget == Decimal("100")
    assert (rules.total_players, rules.starters, rules.substitutes) == (12, 8, 4)
    assert rules.max_per_real_team == 2
    assert rules.max_transfers_per_round == 2


def test_get_rules_missing_raises():
    with pytest.raises(KeyError):
        get_rules("curling")


def test_iter_rules_lists_presets():
    assert get_rules("five_a_side") in list(iter_rules())


def test_rule_set_rejects_inconsistent_counts():
    with pytest.raises(ValueError):
        RuleSet(
            budget=Decimal("100"),
            total_players=12,
            starters=8,
            substitutes=3,
            max_per_real_team=2,
            max_transfers_per_round=2,
        )


def test_rule_set_coerces_budget_and_serialises():
    rules = RuleSet(
        budget=75.5,  # type: ignore[arg-type]
        total_players=5,
        starters=4,
        substitutes=1,
        max_per_real_team=1,
        max_transfers_per_round=0,
    )
    assert rules.budget == Decimal("75.5")
    assert RuleSet.from_dict(rules.to_dict()) == rules


def test_default_scoring_values():
    assert DEFAULT_SCORING.goal == 5
    assert DEFAULT_SCORING.captain_multiplier == 2
    assert DEFAULT_SCORING.triple_captain_multiplier == 3
    assert DEFAULT_SCORING.clean_sheet_positions == frozenset({"GK", "DEF"})
