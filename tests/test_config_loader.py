import json

from pyleague.config import get_rules
from pyleague.config_loader import LeagueProfile


def test_profile_save_and_load(tmp_path):
    path = tmp_path / "league.json"
    LeagueProfile(name="Sunday League", rules=get_rules("five_a_side")).save(path)

    loaded = LeagueProfile.load(path)

    assert loaded.name == "Sunday League"
    assert loaded.rules == get_rules("five_a_side")


def test_profile_accepts_preset_name(tmp_path):
    path = tmp_path / "cup.json"
    path.write_text(json.dumps({"rules": "full_squad"}), encoding="utf-8")

    loaded = LeagueProfile.load(path)

    assert loaded.name == "cup"
    assert loaded.rules.total_players == 15


def test_profile_defaults_to_classic(tmp_path):
    path = tmp_path / "blank.json"
    path.write_text(json.dumps({"name": "Blank"}), encoding="utf-8")

    assert LeagueProfile.load(path).rules == get_rules("classic")
