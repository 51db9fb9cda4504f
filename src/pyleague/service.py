"""Command and query entry points that tie the rule engine to the store."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

from pyleague.config import DEFAULT_SCORING, ScoringRules
from pyleague.errors import ConcurrentModification, ErrorCode, OperationResult
from pyleague.models import (
    CaptainType,
    FantasyTeam,
    LineupEntry,
    Player,
    PlayerRoundScore,
    Round,
    TeamRoundPoints,
    Transfer,
)
from pyleague.persistence import LeagueStore
from pyleague.persistence.match_data import MatchStatProvider, StoreMatchStatProvider
from pyleague.roster import (
    PositionPolicy,
    Selection,
    apply_transfer,
    build_roster,
    designate_captain,
    get_policy,
    remaining_transfers,
    swap_roles,
    validate_transfer,
)
from pyleague.rounds import check_completable, close_transfers, current_round, open_transfers
from pyleague.scoring import (
    HeadToHead,
    LeaderboardRow,
    head_to_head,
    player_totals,
    rank_of,
    rank_overall,
    rank_round,
    score_team,
)


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)

_SCORING_WORKERS_ENV = "PYLEAGUE_SCORING_WORKERS"
_POSITION_POLICY_ENV = "PYLEAGUE_POSITION_POLICY"

T = TypeVar("T")
ChangeListener = Callable[[str, dict[str, Any]], None]


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _scoring_workers() -> int:
    return _env_int(_SCORING_WORKERS_ENV, 1, min_value=1)


def _default_policy() -> PositionPolicy:
    name = os.getenv(_POSITION_POLICY_ENV, "any")
    try:
        return get_policy(name)
    except KeyError:
        logger.warning("Unknown position policy %s; using 'any'", name)
        return get_policy("any")


@dataclass(frozen=True)
class TeamView:
    team: FantasyTeam
    players: Mapping[int, Player]
    round: Optional[Round]
    remaining_transfers: int


@dataclass(frozen=True)
class RoundHistoryEntry:
    round_id: int
    round_number: int
    points: int
    rank: Optional[int]
    lineup: tuple[LineupEntry, ...]
    scores: tuple[PlayerRoundScore, ...]


@dataclass(frozen=True)
class CompletionReport:
    round_id: int
    scored_team_ids: tuple[int, ...] = ()
    skipped_team_ids: tuple[int, ...] = ()
    failed_team_ids: tuple[int, ...] = ()
    missing_stats: Mapping[int, tuple[int, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class LeagueStats:
    league_id: int
    team_count: int
    transfer_count: int
    average_total_points: float
    top_scorers: tuple[tuple[int, int], ...]
    most_transferred_in: tuple[tuple[int, int], ...]


@dataclass(frozen=True)
class TeamRank:
    team_id: int
    league_id: int
    rank: Optional[int]
    total_teams: int
    total_points: int
    recent: tuple[TeamRoundPoints, ...]


class LeagueService:
    """Validates and applies every team and round mutation.

    Each team mutation runs in one store transaction and writes through a
    version compare-and-set. A lost race is retried once with fresh state.
    """

    def __init__(
        self,
        store: LeagueStore,
        *,
        stats_provider: MatchStatProvider | None = None,
        scoring: ScoringRules = DEFAULT_SCORING,
        policy: PositionPolicy | None = None,
        on_change: ChangeListener | None = None,
        scoring_workers: int | None = None,
    ):
        self.store = store
        self.stats_provider = stats_provider or StoreMatchStatProvider(store)
        self.scoring = scoring
        self.policy = policy or _default_policy()
        self._on_change = on_change
        self._scoring_workers = scoring_workers or _scoring_workers()

    def _notify(self, event: str, payload: dict[str, Any]) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(event, payload)
        except Exception:
            logger.exception("Change listener failed for %s", event)

    def _with_retry(self, action: str, attempt: Callable[[], OperationResult[T]]) -> OperationResult[T]:
        for tries in (1, 2):
            try:
                return attempt()
            except ConcurrentModification as exc:
                logger.warning("Conflict during %s (attempt %d): %s", action, tries, exc)
        return OperationResult.failure(
            ErrorCode.CONCURRENT_MODIFICATION,
            f"Concurrent update during {action}; retry the request",
        )

    def _resolve_round(self, conn, team: FantasyTeam, round_id: Optional[int]) -> Optional[Round]:
        if round_id is None:
            return current_round(self.store.list_rounds(team.league_id, conn=conn))
        round_ = self.store.require_round(round_id, conn=conn)
        if round_.league_id != team.league_id:
            raise KeyError(f"Round {round_id} not found in league {team.league_id}")
        return round_

    # Team commands -------------------------------------------------------

    def create_team(
        self,
        *,
        league_id: int,
        owner_id: int,
        name: str,
        selections: Sequence[Selection],
    ) -> OperationResult[FantasyTeam]:
        league = self.store.require_league(league_id)
        with self.store.transaction() as conn:
            if self.store.find_team(owner_id, league_id, conn=conn) is not None:
                return OperationResult.failure(
                    ErrorCode.TEAM_ALREADY_EXISTS,
                    f"Owner {owner_id} already has a team in league {league_id}",
                )
            catalogue = self.store.league_catalogue(league_id, active_only=True, conn=conn)
            drafted = build_roster(league.rules, selections, catalogue)
            if not drafted.ok:
                return OperationResult.from_violation(drafted.error)
            team = self.store.insert_team(
                conn,
                league_id=league_id,
                owner_id=owner_id,
                name=name,
                draft=drafted.value,
            )
        logger.info("Created team %s for owner %s in league %s", team.team_id, owner_id, league_id)
        self._notify("team_created", {"league_id": league_id, "team_id": team.team_id})
        return OperationResult.success(team)

    def execute_transfer(
        self,
        *,
        team_id: int,
        player_out_id: int,
        player_in_id: int,
        round_id: Optional[int] = None,
    ) -> OperationResult[Transfer]:
        def attempt() -> OperationResult[Transfer]:
            with self.store.transaction() as conn:
                team = self.store.require_team(team_id, conn=conn)
                league = self.store.require_league(team.league_id, conn=conn)
                round_ = self._resolve_round(conn, team, round_id)
                catalogue = self.store.league_catalogue(team.league_id, conn=conn)
                active = self.store.league_catalogue(team.league_id, active_only=True, conn=conn)
                eligible = {
                    pid: player
                    for pid, player in catalogue.items()
                    if pid in active or team.slot_for_player(pid) is not None
                }
                made = self.store.count_transfers(team_id, round_.round_id, conn=conn) if round_ else 0
                planned = validate_transfer(
                    rules=league.rules,
                    team=team,
                    round_=round_,
                    player_out_id=player_out_id,
                    player_in_id=player_in_id,
                    catalogue=eligible,
                    transfers_made=made,
                    policy=self.policy,
                )
                if not planned.ok:
                    return OperationResult.from_violation(planned.error)
                plan = planned.value
                self.store.save_team_state(conn, apply_transfer(team, plan))
                transfer = self.store.insert_transfer(conn, plan)
            return OperationResult.success(transfer)

        result = self._with_retry("transfer", attempt)
        if result.ok:
            transfer = result.value
            logger.info(
                "Team %s transferred out %s for %s in round %s",
                team_id,
                player_out_id,
                player_in_id,
                transfer.round_id,
            )
            self._notify(
                "transfer_executed",
                {"team_id": team_id, "round_id": transfer.round_id, "transfer_id": transfer.transfer_id},
            )
        return result

    def swap_roles(
        self,
        *,
        team_id: int,
        first_slot: int,
        second_slot: int,
        round_id: Optional[int] = None,
    ) -> OperationResult[FantasyTeam]:
        def attempt() -> OperationResult[FantasyTeam]:
            with self.store.transaction() as conn:
                team = self.store.require_team(team_id, conn=conn)
                round_ = self._resolve_round(conn, team, round_id)
                catalogue = self.store.league_catalogue(team.league_id, conn=conn)
                swapped = swap_roles(team, round_, first_slot, second_slot, catalogue, self.policy)
                if not swapped.ok:
                    return swapped
                saved = self.store.save_team_state(conn, swapped.value)
            return OperationResult.success(saved)

        result = self._with_retry("role swap", attempt)
        if result.ok:
            self._notify("lineup_changed", {"team_id": team_id})
        return result

    def set_captain(
        self,
        *,
        team_id: int,
        slot_index: int,
        captain_type: CaptainType | str = CaptainType.CAPTAIN,
        round_id: Optional[int] = None,
    ) -> OperationResult[FantasyTeam]:
        captain_type = CaptainType(captain_type)

        def attempt() -> OperationResult[FantasyTeam]:
            with self.store.transaction() as conn:
                team = self.store.require_team(team_id, conn=conn)
                round_ = self._resolve_round(conn, team, round_id)
                designated = designate_captain(team, round_, slot_index, captain_type)
                if not designated.ok:
                    return designated
                saved = self.store.save_team_state(conn, designated.value)
            return OperationResult.success(saved)

        result = self._with_retry("captain change", attempt)
        if result.ok:
            self._notify("captain_changed", {"team_id": team_id, "captain_type": captain_type.value})
        return result

    # Round commands ------------------------------------------------------

    def open_transfers(self, round_id: int) -> OperationResult[Round]:
        """Open a round's window; refused while an earlier round awaits completion.

        Rosters are scored live, so a LOCKED round keeps its lineup only as
        long as no later window lets teams change it.
        """

        return self._set_window(
            round_id,
            lambda round_, rounds: open_transfers(round_, rounds=rounds),
            "transfers_opened",
        )

    def close_transfers(self, round_id: int) -> OperationResult[Round]:
        return self._set_window(round_id, lambda round_, rounds: close_transfers(round_), "transfers_closed")

    def _set_window(
        self,
        round_id: int,
        transition: Callable[[Round, Sequence[Round]], OperationResult[Round]],
        event: str,
    ) -> OperationResult[Round]:
        def attempt() -> OperationResult[Round]:
            with self.store.transaction() as conn:
                round_ = self.store.require_round(round_id, conn=conn)
                moved = transition(round_, self.store.list_rounds(round_.league_id, conn=conn))
                if not moved.ok or moved.value == round_:
                    return moved
                saved = self.store.save_round_flags(conn, moved.value)
            return OperationResult.success(saved)

        result = self._with_retry(event.replace("_", " "), attempt)
        if result.ok:
            logger.info("Round %s: %s", round_id, event)
            self._notify(event, {"round_id": round_id, "league_id": result.value.league_id})
        return result

    def complete_round(self, round_id: int) -> OperationResult[CompletionReport]:
        """Close the round for good, score every team once and persist ranks.

        Only the first caller wins the completion claim; later calls return
        ``ROUND_ALREADY_COMPLETED`` and change nothing.
        """

        round_ = self.store.require_round(round_id)
        checked = check_completable(round_)
        if not checked.ok:
            return OperationResult.from_violation(checked.error)
        if not self.store.claim_completion(round_id):
            return OperationResult.failure(
                ErrorCode.ROUND_ALREADY_COMPLETED,
                f"Round {round_.number} is already completed",
            )
        report = self._score_round(self.store.require_round(round_id))
        self._notify(
            "round_completed",
            {"round_id": round_id, "league_id": round_.league_id, "failed": list(report.failed_team_ids)},
        )
        return OperationResult.success(report)

    def resume_scoring(self, round_id: int) -> CompletionReport:
        """Score teams a completed round missed, e.g. after a crash mid-completion."""

        round_ = self.store.require_round(round_id)
        if not round_.is_completed:
            raise ValueError(f"Round {round_id} has not been completed")
        return self._score_round(round_)

    def _score_round(self, round_: Round) -> CompletionReport:
        teams = self.store.list_teams(round_.league_id)
        catalogue = self.store.league_catalogue(round_.league_id)
        scored: list[int] = []
        skipped: list[int] = []
        failed: list[int] = []
        missing: dict[int, tuple[int, ...]] = {}

        def run(team: FantasyTeam) -> tuple[int, Optional[tuple[int, ...]]]:
            return team.team_id, self._score_team(team.team_id, round_, catalogue)

        if self._scoring_workers > 1 and len(teams) > 1:
            with ThreadPoolExecutor(max_workers=self._scoring_workers) as pool:
                futures = [(team.team_id, pool.submit(run, team)) for team in teams]
                outcomes = []
                for team_id, future in futures:
                    try:
                        outcomes.append(future.result())
                    except Exception:
                        logger.exception("Scoring failed for team %s in round %s", team_id, round_.round_id)
                        failed.append(team_id)
        else:
            outcomes = []
            for team in teams:
                try:
                    outcomes.append(run(team))
                except Exception:
                    logger.exception("Scoring failed for team %s in round %s", team.team_id, round_.round_id)
                    failed.append(team.team_id)

        for team_id, missing_ids in outcomes:
            if missing_ids is None:
                skipped.append(team_id)
                continue
            scored.append(team_id)
            if missing_ids:
                missing[team_id] = missing_ids

        rows = rank_round(self.store.list_teams(round_.league_id), self.store.round_points(round_.round_id))
        self.store.set_round_ranks(round_.round_id, {row.fantasy_team_id: row.rank for row in rows})
        logger.info(
            "Round %s scored: %d teams scored, %d skipped, %d failed",
            round_.round_id,
            len(scored),
            len(skipped),
            len(failed),
        )
        return CompletionReport(
            round_id=round_.round_id,
            scored_team_ids=tuple(scored),
            skipped_team_ids=tuple(skipped),
            failed_team_ids=tuple(failed),
            missing_stats=missing,
        )

    def _score_team(
        self,
        team_id: int,
        round_: Round,
        catalogue: Mapping[int, Player],
    ) -> Optional[tuple[int, ...]]:
        """Score one team; ``None`` means it already had points for the round."""

        team = self.store.require_team(team_id)
        stats = self.stats_provider.stats_for_round(round_.round_id, team.player_ids)
        with self.store.transaction() as conn:
            if self.store.team_round_scored(conn, team_id, round_.round_id):
                return None
            team = self.store.require_team(team_id, conn=conn)
            card = score_team(team, round_.round_id, stats, catalogue, self.scoring)
            self.store.save_score_card(conn, card)
        return card.missing_player_ids

    # Queries -------------------------------------------------------------

    def get_team(self, team_id: int, *, round_id: Optional[int] = None) -> TeamView:
        team = self.store.require_team(team_id)
        catalogue = self.store.league_catalogue(team.league_id)
        players = {pid: catalogue[pid] for pid in team.player_ids if pid in catalogue}
        round_ = self._resolve_round(None, team, round_id)
        return TeamView(
            team=team,
            players=players,
            round=round_,
            remaining_transfers=self._remaining(team, round_),
        )

    def _remaining(self, team: FantasyTeam, round_: Optional[Round]) -> int:
        rules = self.store.require_league(team.league_id).rules
        made = self.store.count_transfers(team.team_id, round_.round_id) if round_ else 0
        return remaining_transfers(rules, round_, made)

    def remaining_transfers(self, team_id: int, round_id: Optional[int] = None) -> int:
        team = self.store.require_team(team_id)
        return self._remaining(team, self._resolve_round(None, team, round_id))

    def current_round(self, league_id: int) -> Optional[Round]:
        self.store.require_league(league_id)
        return current_round(self.store.list_rounds(league_id))

    def leaderboard(self, league_id: int, *, round_id: Optional[int] = None) -> list[LeaderboardRow]:
        self.store.require_league(league_id)
        teams = self.store.list_teams(league_id)
        if round_id is None:
            return rank_overall(teams)
        round_ = self.store.require_round(round_id)
        if round_.league_id != league_id:
            raise KeyError(f"Round {round_id} not found in league {league_id}")
        return rank_round(teams, self.store.round_points(round_id))

    def team_rank(self, team_id: int, *, recent: int = 5) -> TeamRank:
        """Overall standing of one team plus its latest scored rounds, newest first."""

        team = self.store.require_team(team_id)
        rows = rank_overall(self.store.list_teams(team.league_id))
        history = self.store.team_round_points(team_id)
        return TeamRank(
            team_id=team_id,
            league_id=team.league_id,
            rank=rank_of(rows, team_id),
            total_teams=len(rows),
            total_points=team.total_points,
            recent=tuple(reversed(history[-recent:])) if recent > 0 else (),
        )

    def team_history(self, team_id: int) -> list[RoundHistoryEntry]:
        team = self.store.require_team(team_id)
        rounds = {r.round_id: r for r in self.store.list_rounds(team.league_id)}
        history: list[RoundHistoryEntry] = []
        for entry in self.store.team_round_points(team_id):
            round_ = rounds.get(entry.round_id)
            history.append(
                RoundHistoryEntry(
                    round_id=entry.round_id,
                    round_number=round_.number if round_ else 0,
                    points=entry.points,
                    rank=entry.rank,
                    lineup=tuple(self.store.lineup_snapshot(team_id, entry.round_id)),
                    scores=tuple(self.store.player_round_scores(team_id, entry.round_id)),
                )
            )
        history.sort(key=lambda item: (item.round_number, item.round_id))
        return history

    def transfer_history(self, team_id: int, *, round_id: Optional[int] = None) -> list[Transfer]:
        self.store.require_team(team_id)
        return self.store.list_transfers(team_id, round_id=round_id)

    def round_transfers(self, round_id: int) -> list[Transfer]:
        self.store.require_round(round_id)
        return self.store.list_round_transfers(round_id)

    def league_stats(self, league_id: int, *, top: int = 5) -> LeagueStats:
        self.store.require_league(league_id)
        teams = self.store.list_teams(league_id)
        catalogue = self.store.league_catalogue(league_id)
        totals = player_totals(self.store.league_match_stats(league_id), catalogue, self.scoring)
        top_scorers = sorted(totals.items(), key=lambda item: (-item[1], item[0]))[:top]
        average = sum(team.total_points for team in teams) / len(teams) if teams else 0.0
        return LeagueStats(
            league_id=league_id,
            team_count=len(teams),
            transfer_count=self.store.count_league_transfers(league_id),
            average_total_points=round(average, 2),
            top_scorers=tuple(top_scorers),
            most_transferred_in=tuple(self.store.most_transferred_in(league_id, top)),
        )

    def head_to_head(self, first_team_id: int, second_team_id: int) -> HeadToHead:
        first = self.store.require_team(first_team_id)
        second = self.store.require_team(second_team_id)
        if first.league_id != second.league_id:
            raise ValueError("Head-to-head needs two teams from the same league")
        return head_to_head(
            first_team_id,
            {row.round_id: row.points for row in self.store.team_round_points(first_team_id)},
            second_team_id,
            {row.round_id: row.points for row in self.store.team_round_points(second_team_id)},
        )


__all__ = [
    "CompletionReport",
    "LeagueService",
    "LeagueStats",
    "RoundHistoryEntry",
    "TeamRank",
    "TeamView",
]
