from dataclasses import replace

from pyleague.errors import ErrorCode
from pyleague.models import CaptainDesignation, CaptainType, Position
from pyleague.roster import SamePositionPolicy, designate_captain, swap_roles

from tests.factories import catalogue_of, make_round, make_team, player


CATALOGUE = catalogue_of(
    [
        player(1, "5", position=Position.GK),
        player(2, "5", position=Position.DEF),
        player(3, "5", position=Position.MID),
        player(4, "5", position=Position.GK),
    ]
)


def test_swap_exchanges_roles_and_keeps_counts():
    team = make_team([1, 2, 3, 4])

    result = swap_roles(team, make_round(), 0, 3, CATALOGUE)

    assert result.ok
    assert result.value.slot(0).is_starter is False
    assert result.value.slot(3).is_starter is True
    assert len(result.value.starters) == len(team.starters)


def test_swap_requires_opposite_roles():
    team = make_team([1, 2, 3, 4])

    result = swap_roles(team, make_round(), 0, 1, CATALOGUE)

    assert result.error.code is ErrorCode.INVALID_SWAP_PAIR


def test_swap_unknown_slot():
    result = swap_roles(make_team([1, 2, 3, 4]), make_round(), 0, 9, CATALOGUE)
    assert result.error.code is ErrorCode.UNKNOWN_SLOT


def test_swap_locked_when_window_closed():
    result = swap_roles(make_team([1, 2, 3, 4]), make_round(transfers_open=False), 0, 3, CATALOGUE)
    assert result.error.code is ErrorCode.LINEUP_LOCKED


def test_swap_with_same_position_policy():
    team = make_team([1, 2, 3, 4])

    assert swap_roles(team, make_round(), 0, 3, CATALOGUE, SamePositionPolicy()).ok
    rejected = swap_roles(team, make_round(), 1, 3, CATALOGUE, SamePositionPolicy())
    assert rejected.error.code is ErrorCode.POSITION_MISMATCH


def test_captain_moves_as_a_single_designation():
    team = make_team([1, 2, 3, 4])

    first = designate_captain(team, make_round(), 0, CaptainType.CAPTAIN).value
    second = designate_captain(first, make_round(), 2, CaptainType.CAPTAIN).value

    assert first.captain == CaptainDesignation(0, CaptainType.CAPTAIN)
    assert second.captain_type_of(0) is CaptainType.NONE
    assert second.captain_type_of(2) is CaptainType.CAPTAIN


def test_captain_must_start():
    result = designate_captain(make_team([1, 2, 3, 4]), make_round(), 3, CaptainType.CAPTAIN)
    assert result.error.code is ErrorCode.CAPTAIN_NOT_STARTER


def test_triple_captain_once_per_season():
    team = make_team([1, 2, 3, 4])

    tripled = designate_captain(team, make_round(), 1, CaptainType.TRIPLE_CAPTAIN).value
    assert tripled.triple_captain_used is True

    next_round = replace(tripled, captain=None)
    again = designate_captain(next_round, make_round(number=2), 1, CaptainType.TRIPLE_CAPTAIN)
    assert again.error.code is ErrorCode.TRIPLE_CAPTAIN_USED


def test_clear_captain():
    team = replace(make_team([1, 2, 3, 4]), captain=CaptainDesignation(0, CaptainType.CAPTAIN))

    cleared = designate_captain(team, make_round(), 0, CaptainType.NONE)

    assert cleared.ok
    assert cleared.value.captain is None


def test_captain_locked_when_window_closed():
    result = designate_captain(make_team([1, 2, 3, 4]), make_round(transfers_open=False), 0, CaptainType.CAPTAIN)
    assert result.error.code is ErrorCode.LINEUP_LOCKED
