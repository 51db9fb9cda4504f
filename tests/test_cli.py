import json

import pytest

from pyleague.cli import main
from pyleague.persistence import LeagueStore

from tests.factories import add_round


def test_create_and_list_leagues(tmp_path, capsys):
    db = tmp_path / "cli.sqlite"

    assert main(["--db", str(db), "create-league", "--name", "Sunday", "--rules", "five_a_side"]) == 0
    created = json.loads(capsys.readouterr().out)
    assert created["name"] == "Sunday"
    assert created["rules"]["budget"] == "50"

    assert main(["--db", str(db), "create-league", "--name", "Midweek"]) == 0
    capsys.readouterr()

    assert main(["--db", str(db), "list-leagues"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert "Sunday" in lines[0] and "5+2 players, budget 50" in lines[0]
    assert "Midweek" in lines[1] and "8+4 players, budget 100" in lines[1]

    assert main(["--db", str(db), "list-leagues", "--limit", "1"]) == 0
    assert len(capsys.readouterr().out.splitlines()) == 1


def test_open_round_reports_rule_violation(tmp_path, capsys):
    db = tmp_path / "cli.sqlite"
    main(["--db", str(db), "create-league", "--name", "Sunday"])
    capsys.readouterr()
    store = LeagueStore(db)
    league = store.list_leagues()[0]
    first = add_round(store, league.league_id, number=1)
    second = add_round(store, league.league_id, number=2)

    with pytest.raises(SystemExit) as excinfo:
        main(["--db", str(db), "open-round", str(second.round_id)])
    assert "PREVIOUS_ROUND_INCOMPLETE" in str(excinfo.value.code)

    assert main(["--db", str(db), "open-round", str(first.round_id)]) == 0
    assert "transfers open" in capsys.readouterr().out
