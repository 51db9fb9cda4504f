from dataclasses import replace
from decimal import Decimal

from pyleague.config import RuleSet
from pyleague.errors import ErrorCode
from pyleague.models import CaptainDesignation, CaptainType, Position
from pyleague.roster import SamePositionPolicy, apply_transfer, remaining_transfers, validate_transfer

from tests.factories import SMALL_RULES, catalogue_of, make_round, make_team, player


def _setup(budget: str = "2.0"):
    pool = [
        player(1, "4.0", position=Position.DEF),
        player(2, "5.0", real_team_id=20),
        player(3, "5.0", real_team_id=20),
        player(4, "5.0"),
        player(5, "6.5", position=Position.FWD),
        player(6, "3.0", position=Position.DEF, real_team_id=20),
    ]
    return make_team([1, 2, 3, 4], budget=budget), catalogue_of(pool)


def _validate(team, catalogue, *, out_id=1, in_id=5, round_=None, made=0, rules=SMALL_RULES, policy=None):
    return validate_transfer(
        rules=rules,
        team=team,
        round_=round_ if round_ is not None else make_round(),
        player_out_id=out_id,
        player_in_id=in_id,
        catalogue=catalogue,
        transfers_made=made,
        policy=policy,
    )


def test_insufficient_budget():
    team, catalogue = _setup(budget="2.0")

    result = _validate(team, catalogue)

    assert result.error.code is ErrorCode.INSUFFICIENT_BUDGET


def test_closed_window_wins_over_budget():
    team, catalogue = _setup(budget="50")

    closed = _validate(team, catalogue, round_=make_round(transfers_open=False))
    completed = _validate(team, catalogue, round_=make_round(transfers_open=True, is_completed=True))
    no_round = validate_transfer(
        rules=SMALL_RULES,
        team=team,
        round_=None,
        player_out_id=1,
        player_in_id=5,
        catalogue=catalogue,
        transfers_made=0,
    )

    assert closed.error.code is ErrorCode.TRANSFER_WINDOW_CLOSED
    assert completed.error.code is ErrorCode.TRANSFER_WINDOW_CLOSED
    assert no_round.error.code is ErrorCode.TRANSFER_WINDOW_CLOSED


def test_successful_transfer_keeps_slot_role_and_captain():
    team, catalogue = _setup(budget="2.5")
    team = replace(team, captain=CaptainDesignation(0, CaptainType.CAPTAIN))

    result = _validate(team, catalogue)

    assert result.ok
    plan = result.value
    assert plan.slot_index == 0
    assert plan.budget_after == Decimal("0.0")
    assert plan.remaining_after == 1

    updated = apply_transfer(team, plan)
    assert updated.slot(0).player_id == 5
    assert updated.slot(0).is_starter is True
    assert updated.captain_type_of(0) is CaptainType.CAPTAIN
    before = team.budget_remaining + sum(catalogue[pid].price for pid in team.player_ids)
    after = updated.budget_remaining + sum(catalogue[pid].price for pid in updated.player_ids)
    assert before == after == Decimal("21.5")


def test_player_not_on_roster_and_already_owned():
    team, catalogue = _setup(budget="50")

    assert _validate(team, catalogue, out_id=5, in_id=6).error.code is ErrorCode.PLAYER_NOT_ON_ROSTER
    assert _validate(team, catalogue, out_id=1, in_id=2).error.code is ErrorCode.PLAYER_ALREADY_OWNED
    assert _validate(team, catalogue, out_id=1, in_id=42).error.code is ErrorCode.UNKNOWN_PLAYER


def test_real_team_cap_excludes_outgoing_player():
    team, catalogue = _setup(budget="50")

    blocked = _validate(team, catalogue, out_id=1, in_id=6)
    allowed = _validate(team, catalogue, out_id=2, in_id=6)

    assert blocked.error.code is ErrorCode.REAL_TEAM_CAP_EXCEEDED
    assert allowed.ok


def test_transfer_limit():
    team, catalogue = _setup(budget="50")

    result = _validate(team, catalogue, made=SMALL_RULES.max_transfers_per_round)

    assert result.error.code is ErrorCode.TRANSFER_LIMIT_EXCEEDED


def test_zero_transfer_rule_set_rejects_everything():
    rules = RuleSet(
        budget=Decimal("30"),
        total_players=4,
        starters=3,
        substitutes=1,
        max_per_real_team=2,
        max_transfers_per_round=0,
    )
    team, catalogue = _setup(budget="50")

    assert _validate(team, catalogue, rules=rules).error.code is ErrorCode.TRANSFER_LIMIT_EXCEEDED


def test_same_position_policy():
    team, catalogue = _setup(budget="50")

    mismatch = _validate(team, catalogue, out_id=1, in_id=5, policy=SamePositionPolicy())

    assert mismatch.error.code is ErrorCode.POSITION_MISMATCH


def test_remaining_transfers():
    assert remaining_transfers(SMALL_RULES, make_round(), 1) == 1
    assert remaining_transfers(SMALL_RULES, make_round(), 5) == 0
    assert remaining_transfers(SMALL_RULES, make_round(transfers_open=False), 0) == 0
