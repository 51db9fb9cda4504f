"""Command-line interface for league administration."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from pyleague.config import get_rules
from pyleague.config_loader import LeagueProfile
from pyleague.persistence import LeagueStore
from pyleague.service import LeagueService


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Administer pyleague fantasy leagues")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path (default: PYLEAGUE_DB_PATH)")
    parser.add_argument("--verbose", action="store_true", help="Enable INFO logging")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-league", help="Create a league from a profile or rule preset")
    create.add_argument("--name", default=None, help="League name (overrides the profile)")
    create.add_argument("--rules", default="classic", help="Rule preset name (e.g., classic, five_a_side)")
    create.add_argument("--load-profile", type=Path, default=None, help="Load league profile JSON")
    create.add_argument("--save-profile", type=Path, default=None, help="Save league profile JSON")

    listing = commands.add_parser("list-leagues", help="Print known leagues")
    listing.add_argument("--limit", type=int, default=50, help="Leagues to print")

    for name, help_text in (
        ("open-round", "Open the transfer window for a round"),
        ("close-round", "Close the transfer window for a round"),
        ("complete-round", "Complete a round and score every team"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("round_id", type=int)

    board = commands.add_parser("leaderboard", help="Print a league leaderboard")
    board.add_argument("league_id", type=int)
    board.add_argument("--round", dest="round_id", type=int, default=None, help="Rank a single round")
    board.add_argument("--limit", type=int, default=20, help="Rows to print")
    return parser.parse_args(argv)


def _create_league(store: LeagueStore, args: argparse.Namespace) -> None:
    if args.load_profile:
        profile = LeagueProfile.load(args.load_profile)
    else:
        profile = LeagueProfile(name=args.name or "League", rules=get_rules(args.rules))
    if args.name:
        profile = LeagueProfile(name=args.name, rules=profile.rules)
    if args.save_profile:
        profile.save(args.save_profile)
        print(f"Saved league profile to {args.save_profile}")
    league = store.create_league(name=profile.name, rules=profile.rules)
    print(json.dumps({"league_id": league.league_id, "name": league.name, "rules": league.rules.to_dict()}, indent=2))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    store = LeagueStore(args.db)
    service = LeagueService(store)

    try:
        if args.command == "create-league":
            _create_league(store, args)
            return 0

        if args.command == "list-leagues":
            for league in store.list_leagues(args.limit):
                rules = league.rules
                print(
                    f"{league.league_id:>4}  {league.name:<30} "
                    f"{rules.starters}+{rules.substitutes} players, budget {rules.budget}"
                )
            return 0

        if args.command == "leaderboard":
            rows = service.leaderboard(args.league_id, round_id=args.round_id)
            for row in rows[: args.limit]:
                print(f"{row.rank:>3}  {row.name:<30} {row.points:>6}  (owner {row.owner_id})")
            return 0

        if args.command == "open-round":
            result = service.open_transfers(args.round_id)
        elif args.command == "close-round":
            result = service.close_transfers(args.round_id)
        else:
            result = service.complete_round(args.round_id)
    except KeyError as exc:
        raise SystemExit(f"Not found: {exc.args[0] if exc.args else exc}") from exc

    if not result.ok:
        raise SystemExit(f"{result.error.code.value}: {result.error.message}")

    if args.command == "complete-round":
        report = result.value
        print(
            f"Round {report.round_id} completed: {len(report.scored_team_ids)} scored, "
            f"{len(report.skipped_team_ids)} skipped, {len(report.failed_team_ids)} failed"
        )
        for team_id, missing in sorted(report.missing_stats.items()):
            print(f"  team {team_id}: no stats for players {', '.join(str(pid) for pid in missing)}")
        return 1 if report.failed_team_ids else 0

    round_ = result.value
    state = "open" if round_.transfers_open else "closed"
    print(f"Round {round_.number} ({round_.round_id}) transfers {state}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
