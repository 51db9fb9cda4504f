"""REST API for pyleague."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Query

from pyleague.api.schemas import (
    CaptainRequest,
    CompletionResponse,
    CreateTeamRequest,
    HeadToHeadResponse,
    HeadToHeadRoundResponse,
    LeaderboardResponse,
    LeaderboardRowResponse,
    LeagueStatsResponse,
    LineupEntryResponse,
    PlayerCountResponse,
    RemainingTransfersResponse,
    RosterSlotResponse,
    RoundHistoryResponse,
    RoundPointsResponse,
    RoundResponse,
    SwapRequest,
    TeamRankResponse,
    TeamResponse,
    TransferRequest,
    TransferResponse,
)
from pyleague.errors import ErrorKind, RuleViolation
from pyleague.models import Round, Transfer
from pyleague.persistence import LeagueStore
from pyleague.roster import Selection
from pyleague.rounds import round_state, seconds_until_lock
from pyleague.scoring import LeaderboardRow
from pyleague.service import ChangeListener, CompletionReport, LeagueService, RoundHistoryEntry, TeamView


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.STATE: 409,
    ErrorKind.TRANSIENT: 503,
}


def _raise_violation(error: RuleViolation) -> NoReturn:
    raise HTTPException(
        status_code=_STATUS_BY_KIND[error.kind],
        detail={"code": error.code.value, "message": error.message},
    )


@contextmanager
def _lookup_errors() -> Iterator[None]:
    try:
        yield
    except KeyError as exc:
        message = str(exc.args[0]) if exc.args else "Not found"
        raise HTTPException(status_code=404, detail={"code": "NOT_FOUND", "message": message}) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"code": "INVALID_REQUEST", "message": str(exc)}) from exc


def _team_response(view: TeamView) -> TeamResponse:
    team = view.team
    roster = []
    for slot in team.roster:
        player = view.players.get(slot.player_id)
        roster.append(
            RosterSlotResponse(
                slot_index=slot.slot_index,
                player_id=slot.player_id,
                name=player.name if player else "",
                position=player.position.value if player else "",
                real_team_id=player.real_team_id if player else 0,
                price=player.price if player else 0,
                is_starter=slot.is_starter,
                captain_type=team.captain_type_of(slot.slot_index).value,
            )
        )
    return TeamResponse(
        team_id=team.team_id,
        league_id=team.league_id,
        owner_id=team.owner_id,
        name=team.name,
        budget_remaining=team.budget_remaining,
        total_points=team.total_points,
        triple_captain_used=team.triple_captain_used,
        round_id=view.round.round_id if view.round else None,
        remaining_transfers=view.remaining_transfers,
        roster=roster,
    )


def _transfer_response(transfer: Transfer) -> TransferResponse:
    return TransferResponse(
        transfer_id=transfer.transfer_id,
        fantasy_team_id=transfer.fantasy_team_id,
        round_id=transfer.round_id,
        player_out_id=transfer.player_out_id,
        player_in_id=transfer.player_in_id,
        created_at=transfer.created_at,
    )


def _round_response(round_: Round) -> RoundResponse:
    return RoundResponse(
        round_id=round_.round_id,
        league_id=round_.league_id,
        number=round_.number,
        name=round_.name,
        start_date=round_.start_date,
        end_date=round_.end_date,
        lock_time=round_.lock_time,
        transfers_open=round_.transfers_open,
        is_completed=round_.is_completed,
        state=round_state(round_).value,
        seconds_until_lock=seconds_until_lock(round_),
    )


def _completion_response(report: CompletionReport) -> CompletionResponse:
    return CompletionResponse(
        round_id=report.round_id,
        scored_team_ids=list(report.scored_team_ids),
        skipped_team_ids=list(report.skipped_team_ids),
        failed_team_ids=list(report.failed_team_ids),
        missing_stats={team_id: list(ids) for team_id, ids in report.missing_stats.items()},
    )


def _history_response(entry: RoundHistoryEntry) -> RoundHistoryResponse:
    scores = {score.player_id: score for score in entry.scores}
    lineup = []
    for item in entry.lineup:
        score = scores.get(item.player_id)
        lineup.append(
            LineupEntryResponse(
                slot_index=item.slot_index,
                player_id=item.player_id,
                position=item.position,
                real_team_id=item.real_team_id,
                is_starter=item.is_starter,
                captain_type=item.captain_type.value,
                base_points=score.base_points if score else None,
                multiplier=score.multiplier if score else None,
                points=score.points if score else None,
            )
        )
    return RoundHistoryResponse(
        round_id=entry.round_id,
        round_number=entry.round_number,
        points=entry.points,
        rank=entry.rank,
        lineup=lineup,
    )


def _leaderboard_rows(rows: list[LeaderboardRow]) -> list[LeaderboardRowResponse]:
    return [
        LeaderboardRowResponse(
            rank=row.rank,
            fantasy_team_id=row.fantasy_team_id,
            name=row.name,
            owner_id=row.owner_id,
            points=row.points,
            total_points=row.total_points,
        )
        for row in rows
    ]


def create_app(db_path: Path | str | None = None, *, on_change: Optional[ChangeListener] = None) -> FastAPI:
    app = FastAPI(title="pyleague")
    store = LeagueStore(db_path)
    service = LeagueService(store, on_change=on_change)
    app.state.store = store
    app.state.service = service

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/teams", response_model=TeamResponse, status_code=201)
    def create_team(payload: CreateTeamRequest) -> TeamResponse:
        with _lookup_errors():
            result = service.create_team(
                league_id=payload.league_id,
                owner_id=payload.owner_id,
                name=payload.name,
                selections=[Selection(item.player_id, item.is_starter) for item in payload.players],
            )
            if not result.ok:
                _raise_violation(result.error)
            return _team_response(service.get_team(result.value.team_id))

    @app.get("/teams/{team_id}", response_model=TeamResponse)
    def get_team(team_id: int, round_id: Optional[int] = Query(default=None)) -> TeamResponse:
        with _lookup_errors():
            return _team_response(service.get_team(team_id, round_id=round_id))

    @app.post("/teams/{team_id}/transfers", response_model=TransferResponse, status_code=201)
    def execute_transfer(team_id: int, payload: TransferRequest) -> TransferResponse:
        with _lookup_errors():
            result = service.execute_transfer(
                team_id=team_id,
                player_out_id=payload.player_out_id,
                player_in_id=payload.player_in_id,
                round_id=payload.round_id,
            )
        if not result.ok:
            _raise_violation(result.error)
        return _transfer_response(result.value)

    @app.get("/teams/{team_id}/transfers", response_model=list[TransferResponse])
    def transfer_history(team_id: int, round_id: Optional[int] = Query(default=None)) -> list[TransferResponse]:
        with _lookup_errors():
            transfers = service.transfer_history(team_id, round_id=round_id)
        return [_transfer_response(item) for item in transfers]

    @app.get("/teams/{team_id}/transfers/remaining", response_model=RemainingTransfersResponse)
    def remaining(team_id: int, round_id: Optional[int] = Query(default=None)) -> RemainingTransfersResponse:
        with _lookup_errors():
            view = service.get_team(team_id, round_id=round_id)
        return RemainingTransfersResponse(
            team_id=team_id,
            round_id=view.round.round_id if view.round else None,
            remaining=view.remaining_transfers,
        )

    @app.post("/teams/{team_id}/lineup/swap", response_model=TeamResponse)
    def swap(team_id: int, payload: SwapRequest) -> TeamResponse:
        with _lookup_errors():
            result = service.swap_roles(
                team_id=team_id,
                first_slot=payload.first_slot,
                second_slot=payload.second_slot,
                round_id=payload.round_id,
            )
            if not result.ok:
                _raise_violation(result.error)
            return _team_response(service.get_team(team_id, round_id=payload.round_id))

    @app.post("/teams/{team_id}/captain", response_model=TeamResponse)
    def captain(team_id: int, payload: CaptainRequest) -> TeamResponse:
        with _lookup_errors():
            result = service.set_captain(
                team_id=team_id,
                slot_index=payload.slot_index,
                captain_type=payload.captain_type,
                round_id=payload.round_id,
            )
            if not result.ok:
                _raise_violation(result.error)
            return _team_response(service.get_team(team_id, round_id=payload.round_id))

    @app.get("/teams/{team_id}/history", response_model=list[RoundHistoryResponse])
    def history(team_id: int) -> list[RoundHistoryResponse]:
        with _lookup_errors():
            entries = service.team_history(team_id)
        return [_history_response(entry) for entry in entries]

    @app.get("/teams/{team_id}/rank", response_model=TeamRankResponse)
    def team_rank(team_id: int) -> TeamRankResponse:
        with _lookup_errors():
            standing = service.team_rank(team_id)
        return TeamRankResponse(
            team_id=standing.team_id,
            league_id=standing.league_id,
            rank=standing.rank,
            total_teams=standing.total_teams,
            total_points=standing.total_points,
            recent=[
                RoundPointsResponse(round_id=item.round_id, points=item.points, rank=item.rank)
                for item in standing.recent
            ],
        )

    @app.get("/teams/{team_id}/head-to-head/{other_team_id}", response_model=HeadToHeadResponse)
    def compare(team_id: int, other_team_id: int) -> HeadToHeadResponse:
        with _lookup_errors():
            result = service.head_to_head(team_id, other_team_id)
        return HeadToHeadResponse(
            first_team_id=result.first_team_id,
            second_team_id=result.second_team_id,
            first_wins=result.first_wins,
            second_wins=result.second_wins,
            draws=result.draws,
            rounds=[
                HeadToHeadRoundResponse(
                    round_id=item.round_id,
                    first_points=item.first_points,
                    second_points=item.second_points,
                    winner=item.winner,
                )
                for item in result.rounds
            ],
        )

    @app.get("/leagues/{league_id}/current-round", response_model=RoundResponse)
    def league_current_round(league_id: int) -> RoundResponse:
        with _lookup_errors():
            round_ = service.current_round(league_id)
        if round_ is None:
            raise HTTPException(status_code=404, detail={"code": "NOT_FOUND", "message": "No upcoming round"})
        return _round_response(round_)

    @app.get("/leagues/{league_id}/leaderboard", response_model=LeaderboardResponse)
    def leaderboard(league_id: int, round_id: Optional[int] = Query(default=None)) -> LeaderboardResponse:
        with _lookup_errors():
            rows = service.leaderboard(league_id, round_id=round_id)
        return LeaderboardResponse(league_id=league_id, round_id=round_id, rows=_leaderboard_rows(rows))

    @app.get("/leagues/{league_id}/stats", response_model=LeagueStatsResponse)
    def league_stats(league_id: int, top: int = Query(default=5, ge=1, le=50)) -> LeagueStatsResponse:
        with _lookup_errors():
            stats = service.league_stats(league_id, top=top)
        return LeagueStatsResponse(
            league_id=stats.league_id,
            team_count=stats.team_count,
            transfer_count=stats.transfer_count,
            average_total_points=stats.average_total_points,
            top_scorers=[PlayerCountResponse(player_id=pid, value=value) for pid, value in stats.top_scorers],
            most_transferred_in=[
                PlayerCountResponse(player_id=pid, value=value) for pid, value in stats.most_transferred_in
            ],
        )

    @app.get("/rounds/{round_id}", response_model=RoundResponse)
    def get_round(round_id: int) -> RoundResponse:
        with _lookup_errors():
            return _round_response(store.require_round(round_id))

    @app.get("/rounds/{round_id}/transfers", response_model=list[TransferResponse])
    def round_transfers(round_id: int) -> list[TransferResponse]:
        with _lookup_errors():
            transfers = service.round_transfers(round_id)
        return [_transfer_response(item) for item in transfers]

    @app.post("/rounds/{round_id}/open", response_model=RoundResponse)
    def open_round(round_id: int) -> RoundResponse:
        with _lookup_errors():
            result = service.open_transfers(round_id)
        if not result.ok:
            _raise_violation(result.error)
        return _round_response(result.value)

    @app.post("/rounds/{round_id}/close", response_model=RoundResponse)
    def close_round(round_id: int) -> RoundResponse:
        with _lookup_errors():
            result = service.close_transfers(round_id)
        if not result.ok:
            _raise_violation(result.error)
        return _round_response(result.value)

    @app.post("/rounds/{round_id}/complete", response_model=CompletionResponse)
    def complete_round(round_id: int) -> CompletionResponse:
        with _lookup_errors():
            result = service.complete_round(round_id)
        if not result.ok:
            _raise_violation(result.error)
        return _completion_response(result.value)

    return app


__all__ = ["create_app"]
