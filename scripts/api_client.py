"""Lightweight REST client for the pyleague API."""

from __future__ import annotations

import argparse
import json

import httpx


def _print_response(resp: httpx.Response, what: str) -> None:
    if resp.status_code == 404:
        raise SystemExit(f"{what} not found")
    if resp.status_code >= 400:
        detail = resp.json().get("detail")
        raise SystemExit(f"{what} failed ({resp.status_code}): {json.dumps(detail)}")
    print(json.dumps(resp.json(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the pyleague REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--leaderboard", metavar="LEAGUE_ID", type=int, help="Print a league leaderboard")
    parser.add_argument("--round", dest="round_id", type=int, help="Round filter for --leaderboard")
    parser.add_argument("--stats", metavar="LEAGUE_ID", type=int, help="Print league statistics")
    parser.add_argument("--open-round", metavar="ROUND_ID", type=int, help="Open transfers for a round")
    parser.add_argument("--close-round", metavar="ROUND_ID", type=int, help="Close transfers for a round")
    parser.add_argument("--complete-round", metavar="ROUND_ID", type=int, help="Complete and score a round")
    parser.add_argument("--team", metavar="TEAM_ID", type=int, help="Show a team roster and budget")
    parser.add_argument("--rank", metavar="TEAM_ID", type=int, help="Show a team's overall rank")
    parser.add_argument("--round-transfers", metavar="ROUND_ID", type=int, help="List transfers made in a round")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.open_round is not None:
            _print_response(client.post(f"/rounds/{args.open_round}/open"), f"round {args.open_round}")
        if args.close_round is not None:
            _print_response(client.post(f"/rounds/{args.close_round}/close"), f"round {args.close_round}")
        if args.complete_round is not None:
            _print_response(client.post(f"/rounds/{args.complete_round}/complete"), f"round {args.complete_round}")
        if args.team is not None:
            _print_response(client.get(f"/teams/{args.team}"), f"team {args.team}")
        if args.rank is not None:
            _print_response(client.get(f"/teams/{args.rank}/rank"), f"team {args.rank}")
        if args.round_transfers is not None:
            _print_response(
                client.get(f"/rounds/{args.round_transfers}/transfers"),
                f"round {args.round_transfers}",
            )
        if args.leaderboard is not None:
            params = {"round_id": args.round_id} if args.round_id is not None else None
            _print_response(
                client.get(f"/leagues/{args.leaderboard}/leaderboard", params=params),
                f"league {args.leaderboard}",
            )
        if args.stats is not None:
            _print_response(client.get(f"/leagues/{args.stats}/stats"), f"league {args.stats}")


if __name__ == "__main__":
    main()
