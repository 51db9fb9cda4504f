from dataclasses import replace

from pyleague.config import DEFAULT_SCORING
from pyleague.models import CaptainDesignation, CaptainType, MatchStat, Position
from pyleague.scoring import match_points, player_totals, score_team

from tests.factories import catalogue_of, make_team, player


CATALOGUE = catalogue_of(
    [
        player(1, "5", position=Position.FWD),
        player(2, "5", position=Position.DEF),
        player(3, "5", position=Position.MID),
        player(4, "5", position=Position.GK),
    ]
)


def _stat(player_id: int, match_id: int = 100, **counters) -> MatchStat:
    return MatchStat(player_id=player_id, match_id=match_id, round_id=1, **counters)


def test_captain_doubles_base_points():
    team = replace(make_team([1, 2, 3, 4]), captain=CaptainDesignation(0, CaptainType.CAPTAIN))
    stats = [_stat(1, goals=2, assists=1, minutes_played=90, yellow_cards=1)]

    card = score_team(team, 1, stats, CATALOGUE)
    scored = {score.player_id: score for score in card.scores}

    assert scored[1].base_points == 13
    assert scored[1].multiplier == 2
    assert scored[1].points == 26


def test_triple_captain_and_bonus():
    team = replace(make_team([1, 2, 3, 4]), captain=CaptainDesignation(2, CaptainType.TRIPLE_CAPTAIN))
    stats = [_stat(3, minutes_played=60, bonus_points=2)]

    card = score_team(team, 1, stats, CATALOGUE)

    assert [(s.player_id, s.points) for s in card.scores if s.player_id == 3] == [(3, 9)]


def test_clean_sheet_only_for_defensive_positions():
    assert match_points(_stat(2, clean_sheet=True, minutes_played=90), Position.DEF) == 6
    assert match_points(_stat(4, clean_sheet=True, minutes_played=90, penalty_saves=1), Position.GK) == 11
    assert match_points(_stat(3, clean_sheet=True, minutes_played=90), Position.MID) == 1


def test_red_card_without_minutes():
    assert match_points(_stat(1, red_cards=1), Position.FWD) == -4


def test_substitutes_are_snapshotted_not_scored():
    team = make_team([1, 2, 3, 4])
    stats = [_stat(4, minutes_played=90, clean_sheet=True)]

    card = score_team(team, 1, stats, CATALOGUE)

    assert [s.player_id for s in card.scores] == [1, 2, 3]
    assert len(card.lineup) == 4
    bench = [entry for entry in card.lineup if not entry.is_starter]
    assert [(entry.player_id, entry.position) for entry in bench] == [(4, "GK")]


def test_missing_stats_score_zero_and_are_reported(caplog):
    team = make_team([1, 2, 3, 4])

    with caplog.at_level("WARNING"):
        card = score_team(team, 1, [_stat(1, minutes_played=90)], CATALOGUE)

    assert card.missing_player_ids == (2, 3)
    assert card.round_points == 1
    assert "No match stats for player 2" in caplog.text


def test_multiple_matches_in_round_are_summed():
    team = make_team([1, 2, 3, 4])
    stats = [_stat(1, match_id=100, goals=1, minutes_played=90), _stat(1, match_id=101, goals=1, minutes_played=90)]

    card = score_team(team, 1, stats, CATALOGUE)

    assert card.scores[0].base_points == 12


def test_stats_from_other_rounds_are_ignored():
    team = make_team([1, 2, 3, 4])
    stray = MatchStat(player_id=1, match_id=5, round_id=2, goals=3, minutes_played=90)

    card = score_team(team, 1, [stray], CATALOGUE)

    assert card.round_points == 0


def test_scoring_is_deterministic():
    team = replace(make_team([1, 2, 3, 4]), captain=CaptainDesignation(1, CaptainType.CAPTAIN))
    stats = [_stat(2, goals=1, minutes_played=90, clean_sheet=True), _stat(1, assists=2, minutes_played=30)]

    assert score_team(team, 1, stats, CATALOGUE) == score_team(team, 1, list(reversed(stats)), CATALOGUE)


def test_player_totals_ignore_unknown_players():
    totals = player_totals([_stat(1, goals=1), _stat(99, goals=4)], CATALOGUE, DEFAULT_SCORING)
    assert totals == {1: 5}
