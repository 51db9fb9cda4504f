"""Persistence layer for leagues, rosters, rounds and round scores."""

from __future__ import annotations

import json
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping, Optional

from pyleague.config import RuleSet
from pyleague.errors import ConcurrentModification
from pyleague.models import (
    CaptainDesignation,
    CaptainType,
    FantasyTeam,
    League,
    LineupEntry,
    MatchStat,
    Player,
    PlayerRoundScore,
    Position,
    RosterSlot,
    Round,
    TeamRoundPoints,
    TeamScoreCard,
    Transfer,
)
from pyleague.roster.builder import RosterDraft
from pyleague.roster.transfers import TransferPlan
from pyleague.rounds.lifecycle import default_lock_time


_DB_ENV = "PYLEAGUE_DB_PATH"
_DEFAULT_DB = Path("data") / "pyleague.sqlite"
_BUSY_TIMEOUT_SECONDS = 30.0

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS leagues (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        rules_json TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS players (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        league_id INTEGER NOT NULL REFERENCES leagues(id),
        name TEXT NOT NULL,
        position TEXT NOT NULL,
        real_team_id INTEGER NOT NULL,
        price TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS fantasy_teams (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        league_id INTEGER NOT NULL REFERENCES leagues(id),
        owner_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        budget_remaining TEXT NOT NULL,
        total_points INTEGER NOT NULL DEFAULT 0,
        captain_slot INTEGER,
        captain_type TEXT NOT NULL DEFAULT 'NONE',
        triple_captain_used INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 0,
        UNIQUE (owner_id, league_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS roster_slots (
        fantasy_team_id INTEGER NOT NULL REFERENCES fantasy_teams(id),
        slot_index INTEGER NOT NULL,
        player_id INTEGER NOT NULL REFERENCES players(id),
        is_starter INTEGER NOT NULL,
        PRIMARY KEY (fantasy_team_id, slot_index),
        UNIQUE (fantasy_team_id, player_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS rounds (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        league_id INTEGER NOT NULL REFERENCES leagues(id),
        number INTEGER NOT NULL,
        name TEXT NOT NULL,
        start_date TEXT NOT NULL,
        end_date TEXT NOT NULL,
        lock_time TEXT,
        transfers_open INTEGER NOT NULL DEFAULT 0,
        is_completed INTEGER NOT NULL DEFAULT 0,
        opened_at TEXT,
        completed_at TEXT,
        version INTEGER NOT NULL DEFAULT 0,
        UNIQUE (league_id, number)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS match_stats (
        player_id INTEGER NOT NULL REFERENCES players(id),
        match_id INTEGER NOT NULL,
        round_id INTEGER NOT NULL REFERENCES rounds(id),
        goals INTEGER NOT NULL DEFAULT 0,
        assists INTEGER NOT NULL DEFAULT 0,
        yellow_cards INTEGER NOT NULL DEFAULT 0,
        red_cards INTEGER NOT NULL DEFAULT 0,
        clean_sheet INTEGER NOT NULL DEFAULT 0,
        penalty_saves INTEGER NOT NULL DEFAULT 0,
        minutes_played INTEGER NOT NULL DEFAULT 0,
        bonus_points INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (player_id, match_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transfers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        fantasy_team_id INTEGER NOT NULL REFERENCES fantasy_teams(id),
        round_id INTEGER NOT NULL REFERENCES rounds(id),
        player_out_id INTEGER NOT NULL,
        player_in_id INTEGER NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_round_points (
        fantasy_team_id INTEGER NOT NULL REFERENCES fantasy_teams(id),
        round_id INTEGER NOT NULL REFERENCES rounds(id),
        points INTEGER NOT NULL,
        rank INTEGER,
        scored_at TEXT NOT NULL,
        PRIMARY KEY (fantasy_team_id, round_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS player_round_scores (
        fantasy_team_id INTEGER NOT NULL REFERENCES fantasy_teams(id),
        round_id INTEGER NOT NULL REFERENCES rounds(id),
        player_id INTEGER NOT NULL,
        base_points INTEGER NOT NULL,
        multiplier INTEGER NOT NULL,
        points INTEGER NOT NULL,
        PRIMARY KEY (fantasy_team_id, round_id, player_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lineup_snapshots (
        fantasy_team_id INTEGER NOT NULL REFERENCES fantasy_teams(id),
        round_id INTEGER NOT NULL REFERENCES rounds(id),
        slot_index INTEGER NOT NULL,
        player_id INTEGER NOT NULL,
        position TEXT NOT NULL,
        real_team_id INTEGER NOT NULL,
        is_starter INTEGER NOT NULL,
        captain_type TEXT NOT NULL,
        PRIMARY KEY (fantasy_team_id, round_id, slot_index)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_transfers_team_round ON transfers (fantasy_team_id, round_id)",
    "CREATE INDEX IF NOT EXISTS idx_match_stats_round ON match_stats (round_id)",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return _as_utc(value).isoformat() if value is not None else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class LeagueStore:
    """SQLite-backed store for leagues, fantasy teams and round results."""

    def __init__(self, db_path: Path | str | None = None):
        self._use_uri = False
        source = db_path or os.getenv(_DB_ENV) or _DEFAULT_DB
        if isinstance(source, str) and source.startswith("file:"):
            self.db_path: Path | str = source
            self._use_uri = True
        else:
            self.db_path = Path(source)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(
            self.db_path,
            uri=self._use_uri,
            timeout=_BUSY_TIMEOUT_SECONDS,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction that holds the database write lock from the start.

        Concurrent writers queue on the lock, so reads made inside the block
        stay valid until commit.
        """

        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    @contextmanager
    def _session(self, conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
        if conn is not None:
            yield conn
            return
        own = self._connect()
        try:
            yield own
        finally:
            own.close()

    # Leagues and players -------------------------------------------------

    def create_league(self, *, name: str, rules: RuleSet, created_at: Optional[datetime] = None) -> League:
        created_at = created_at or _now()
        with self.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO leagues (name, rules_json, created_at) VALUES (?, ?, ?)",
                (name, json.dumps(rules.to_dict()), _iso(created_at)),
            )
            league_id = int(cursor.lastrowid)
        league = self.get_league(league_id)
        if league is None:  # pragma: no cover
            raise KeyError(f"League {league_id} not found after insert")
        return league

    def get_league(self, league_id: int, *, conn: Optional[sqlite3.Connection] = None) -> Optional[League]:
        with self._session(conn) as session:
            row = session.execute("SELECT * FROM leagues WHERE id = ?", (league_id,)).fetchone()
        return self._row_to_league(row) if row is not None else None

    def require_league(self, league_id: int, *, conn: Optional[sqlite3.Connection] = None) -> League:
        league = self.get_league(league_id, conn=conn)
        if league is None:
            raise KeyError(f"League {league_id} not found")
        return league

    def list_leagues(self, limit: int = 50) -> List[League]:
        with self._session(None) as conn:
            rows = conn.execute("SELECT * FROM leagues ORDER BY id LIMIT ?", (limit,)).fetchall()
        return [self._row_to_league(row) for row in rows]

    def add_player(
        self,
        *,
        league_id: int,
        name: str,
        position: Position | str,
        real_team_id: int,
        price: Decimal | str | float,
    ) -> Player:
        position = Position(position)
        price = Decimal(str(price))
        with self.transaction() as conn:
            self.require_league(league_id, conn=conn)
            cursor = conn.execute(
                """
                INSERT INTO players (league_id, name, position, real_team_id, price)
                VALUES (?, ?, ?, ?, ?)
                """,
                (league_id, name, position.value, real_team_id, str(price)),
            )
            player_id = int(cursor.lastrowid)
        return Player(
            player_id=player_id,
            name=name,
            position=position,
            real_team_id=real_team_id,
            price=price,
        )

    def deactivate_player(self, player_id: int) -> None:
        with self.transaction() as conn:
            conn.execute("UPDATE players SET is_active = 0 WHERE id = ?", (player_id,))

    def league_catalogue(
        self,
        league_id: int,
        *,
        active_only: bool = False,
        conn: Optional[sqlite3.Connection] = None,
    ) -> dict[int, Player]:
        query = "SELECT * FROM players WHERE league_id = ?"
        if active_only:
            query += " AND is_active = 1"
        with self._session(conn) as session:
            rows = session.execute(query, (league_id,)).fetchall()
        return {int(row["id"]): self._row_to_player(row) for row in rows}

    # Fantasy teams -------------------------------------------------------

    def find_team(self, owner_id: int, league_id: int, *, conn: Optional[sqlite3.Connection] = None) -> Optional[FantasyTeam]:
        with self._session(conn) as session:
            row = session.execute(
                "SELECT * FROM fantasy_teams WHERE owner_id = ? AND league_id = ?",
                (owner_id, league_id),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_team(session, row)

    def insert_team(
        self,
        conn: sqlite3.Connection,
        *,
        league_id: int,
        owner_id: int,
        name: str,
        draft: RosterDraft,
        created_at: Optional[datetime] = None,
    ) -> FantasyTeam:
        created_at = created_at or _now()
        cursor = conn.execute(
            """
            INSERT INTO fantasy_teams (
                league_id, owner_id, name, budget_remaining, total_points,
                captain_slot, captain_type, triple_captain_used, created_at, version
            ) VALUES (?, ?, ?, ?, 0, NULL, 'NONE', 0, ?, 0)
            """,
            (league_id, owner_id, name, str(draft.budget_remaining), _iso(created_at)),
        )
        team_id = int(cursor.lastrowid)
        conn.executemany(
            "INSERT INTO roster_slots (fantasy_team_id, slot_index, player_id, is_starter) VALUES (?, ?, ?, ?)",
            [(team_id, slot.slot_index, slot.player_id, int(slot.is_starter)) for slot in draft.roster],
        )
        return self.require_team(team_id, conn=conn)

    def get_team(self, team_id: int, *, conn: Optional[sqlite3.Connection] = None) -> Optional[FantasyTeam]:
        with self._session(conn) as session:
            row = session.execute("SELECT * FROM fantasy_teams WHERE id = ?", (team_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_team(session, row)

    def require_team(self, team_id: int, *, conn: Optional[sqlite3.Connection] = None) -> FantasyTeam:
        team = self.get_team(team_id, conn=conn)
        if team is None:
            raise KeyError(f"Fantasy team {team_id} not found")
        return team

    def list_teams(self, league_id: int, *, conn: Optional[sqlite3.Connection] = None) -> List[FantasyTeam]:
        with self._session(conn) as session:
            rows = session.execute(
                "SELECT * FROM fantasy_teams WHERE league_id = ? ORDER BY id",
                (league_id,),
            ).fetchall()
            return [self._row_to_team(session, row) for row in rows]

    def save_team_state(self, conn: sqlite3.Connection, team: FantasyTeam) -> FantasyTeam:
        """Write roster, budget and captain with a compare-and-set on ``team.version``."""

        captain_slot = team.captain.slot_index if team.captain else None
        captain_type = team.captain.captain_type if team.captain else CaptainType.NONE
        cursor = conn.execute(
            """
            UPDATE fantasy_teams
            SET budget_remaining = ?,
                captain_slot = ?,
                captain_type = ?,
                triple_captain_used = ?,
                version = version + 1
            WHERE id = ? AND version = ?
            """,
            (
                str(team.budget_remaining),
                captain_slot,
                captain_type.value,
                int(team.triple_captain_used),
                team.team_id,
                team.version,
            ),
        )
        if cursor.rowcount != 1:
            raise ConcurrentModification(
                f"Fantasy team {team.team_id} changed since version {team.version}"
            )
        for slot in team.roster:
            conn.execute(
                """
                UPDATE roster_slots
                SET player_id = ?, is_starter = ?
                WHERE fantasy_team_id = ? AND slot_index = ?
                """,
                (slot.player_id, int(slot.is_starter), team.team_id, slot.slot_index),
            )
        return self.require_team(team.team_id, conn=conn)

    # Rounds --------------------------------------------------------------

    def create_round(
        self,
        *,
        league_id: int,
        number: int,
        name: str,
        start_date: datetime,
        end_date: datetime,
        lock_time: Optional[datetime] = None,
    ) -> Round:
        start_date, end_date = _as_utc(start_date), _as_utc(end_date)
        if end_date < start_date:
            raise ValueError("Round end_date precedes start_date")
        lock_time = lock_time or default_lock_time(start_date)
        with self.transaction() as conn:
            self.require_league(league_id, conn=conn)
            cursor = conn.execute(
                """
                INSERT INTO rounds (
                    league_id, number, name, start_date, end_date, lock_time,
                    transfers_open, is_completed, version
                ) VALUES (?, ?, ?, ?, ?, ?, 0, 0, 0)
                """,
                (league_id, number, name, _iso(start_date), _iso(end_date), _iso(lock_time)),
            )
            round_id = int(cursor.lastrowid)
            return self.require_round(round_id, conn=conn)

    def get_round(self, round_id: int, *, conn: Optional[sqlite3.Connection] = None) -> Optional[Round]:
        with self._session(conn) as session:
            row = session.execute("SELECT * FROM rounds WHERE id = ?", (round_id,)).fetchone()
        return self._row_to_round(row) if row is not None else None

    def require_round(self, round_id: int, *, conn: Optional[sqlite3.Connection] = None) -> Round:
        round_ = self.get_round(round_id, conn=conn)
        if round_ is None:
            raise KeyError(f"Round {round_id} not found")
        return round_

    def list_rounds(self, league_id: int, *, conn: Optional[sqlite3.Connection] = None) -> List[Round]:
        with self._session(conn) as session:
            rows = session.execute(
                "SELECT * FROM rounds WHERE league_id = ? ORDER BY number, id",
                (league_id,),
            ).fetchall()
        return [self._row_to_round(row) for row in rows]

    def save_round_flags(self, conn: sqlite3.Connection, round_: Round) -> Round:
        """Persist ``transfers_open``/``opened_at`` unless the round completed meanwhile."""

        cursor = conn.execute(
            """
            UPDATE rounds
            SET transfers_open = ?, opened_at = ?, version = version + 1
            WHERE id = ? AND version = ? AND is_completed = 0
            """,
            (int(round_.transfers_open), _iso(round_.opened_at), round_.round_id, round_.version),
        )
        if cursor.rowcount != 1:
            raise ConcurrentModification(f"Round {round_.round_id} changed since version {round_.version}")
        return self.require_round(round_.round_id, conn=conn)

    def claim_completion(self, round_id: int, *, completed_at: Optional[datetime] = None) -> bool:
        """Flip ``is_completed`` exactly once; returns ``False`` for every later caller."""

        with self.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE rounds
                SET is_completed = 1, transfers_open = 0, completed_at = ?, version = version + 1
                WHERE id = ? AND is_completed = 0
                """,
                (_iso(completed_at or _now()), round_id),
            )
            return cursor.rowcount == 1

    # Transfers -----------------------------------------------------------

    def count_transfers(self, team_id: int, round_id: int, *, conn: Optional[sqlite3.Connection] = None) -> int:
        with self._session(conn) as session:
            row = session.execute(
                "SELECT COUNT(*) AS n FROM transfers WHERE fantasy_team_id = ? AND round_id = ?",
                (team_id, round_id),
            ).fetchone()
        return int(row["n"])

    def insert_transfer(
        self,
        conn: sqlite3.Connection,
        plan: TransferPlan,
        *,
        created_at: Optional[datetime] = None,
    ) -> Transfer:
        created_at = created_at or _now()
        cursor = conn.execute(
            """
            INSERT INTO transfers (fantasy_team_id, round_id, player_out_id, player_in_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (plan.fantasy_team_id, plan.round_id, plan.player_out_id, plan.player_in_id, _iso(created_at)),
        )
        return Transfer(
            transfer_id=int(cursor.lastrowid),
            fantasy_team_id=plan.fantasy_team_id,
            round_id=plan.round_id,
            player_out_id=plan.player_out_id,
            player_in_id=plan.player_in_id,
            created_at=_as_utc(created_at),
        )

    def list_transfers(self, team_id: int, *, round_id: Optional[int] = None) -> List[Transfer]:
        query = "SELECT * FROM transfers WHERE fantasy_team_id = ?"
        params: list[int] = [team_id]
        if round_id is not None:
            query += " AND round_id = ?"
            params.append(round_id)
        query += " ORDER BY created_at DESC, id DESC"
        with self._session(None) as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_transfer(row) for row in rows]

    def list_round_transfers(self, round_id: int) -> List[Transfer]:
        with self._session(None) as conn:
            rows = conn.execute(
                "SELECT * FROM transfers WHERE round_id = ? ORDER BY created_at DESC, id DESC",
                (round_id,),
            ).fetchall()
        return [self._row_to_transfer(row) for row in rows]

    def count_league_transfers(self, league_id: int) -> int:
        with self._session(None) as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS n FROM transfers t
                JOIN fantasy_teams f ON f.id = t.fantasy_team_id
                WHERE f.league_id = ?
                """,
                (league_id,),
            ).fetchone()
        return int(row["n"])

    def most_transferred_in(self, league_id: int, limit: int = 5) -> List[tuple[int, int]]:
        with self._session(None) as conn:
            rows = conn.execute(
                """
                SELECT t.player_in_id AS player_id, COUNT(*) AS n FROM transfers t
                JOIN fantasy_teams f ON f.id = t.fantasy_team_id
                WHERE f.league_id = ?
                GROUP BY t.player_in_id
                ORDER BY n DESC, t.player_in_id
                LIMIT ?
                """,
                (league_id, limit),
            ).fetchall()
        return [(int(row["player_id"]), int(row["n"])) for row in rows]

    # Match statistics ----------------------------------------------------

    def record_match_stat(self, stat: MatchStat) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO match_stats (
                    player_id, match_id, round_id, goals, assists, yellow_cards, red_cards,
                    clean_sheet, penalty_saves, minutes_played, bonus_points
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (player_id, match_id) DO UPDATE SET
                    round_id = excluded.round_id,
                    goals = excluded.goals,
                    assists = excluded.assists,
                    yellow_cards = excluded.yellow_cards,
                    red_cards = excluded.red_cards,
                    clean_sheet = excluded.clean_sheet,
                    penalty_saves = excluded.penalty_saves,
                    minutes_played = excluded.minutes_played,
                    bonus_points = excluded.bonus_points
                """,
                (
                    stat.player_id,
                    stat.match_id,
                    stat.round_id,
                    stat.goals,
                    stat.assists,
                    stat.yellow_cards,
                    stat.red_cards,
                    int(stat.clean_sheet),
                    stat.penalty_saves,
                    stat.minutes_played,
                    stat.bonus_points,
                ),
            )

    def match_stats_for_round(self, round_id: int, player_ids: Optional[Iterable[int]] = None) -> List[MatchStat]:
        query = "SELECT * FROM match_stats WHERE round_id = ?"
        params: list[int] = [round_id]
        ids = sorted(set(player_ids)) if player_ids is not None else None
        if ids is not None:
            if not ids:
                return []
            query += f" AND player_id IN ({', '.join('?' for _ in ids)})"
            params.extend(ids)
        query += " ORDER BY player_id, match_id"
        with self._session(None) as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_stat(row) for row in rows]

    def league_match_stats(self, league_id: int) -> List[MatchStat]:
        with self._session(None) as conn:
            rows = conn.execute(
                """
                SELECT s.* FROM match_stats s
                JOIN rounds r ON r.id = s.round_id
                WHERE r.league_id = ?
                ORDER BY s.player_id, s.match_id
                """,
                (league_id,),
            ).fetchall()
        return [self._row_to_stat(row) for row in rows]

    # Round scores --------------------------------------------------------

    def team_round_scored(self, conn: sqlite3.Connection, team_id: int, round_id: int) -> bool:
        row = conn.execute(
            "SELECT 1 FROM team_round_points WHERE fantasy_team_id = ? AND round_id = ?",
            (team_id, round_id),
        ).fetchone()
        return row is not None

    def save_score_card(self, conn: sqlite3.Connection, card: TeamScoreCard, *, scored_at: Optional[datetime] = None) -> None:
        conn.execute(
            """
            INSERT INTO team_round_points (fantasy_team_id, round_id, points, rank, scored_at)
            VALUES (?, ?, ?, NULL, ?)
            """,
            (card.fantasy_team_id, card.round_id, card.round_points, _iso(scored_at or _now())),
        )
        conn.executemany(
            """
            INSERT INTO player_round_scores (
                fantasy_team_id, round_id, player_id, base_points, multiplier, points
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (s.fantasy_team_id, s.round_id, s.player_id, s.base_points, s.multiplier, s.points)
                for s in card.scores
            ],
        )
        conn.executemany(
            """
            INSERT INTO lineup_snapshots (
                fantasy_team_id, round_id, slot_index, player_id, position,
                real_team_id, is_starter, captain_type
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    e.fantasy_team_id,
                    e.round_id,
                    e.slot_index,
                    e.player_id,
                    e.position,
                    e.real_team_id,
                    int(e.is_starter),
                    e.captain_type.value,
                )
                for e in card.lineup
            ],
        )
        conn.execute(
            "UPDATE fantasy_teams SET total_points = total_points + ?, version = version + 1 WHERE id = ?",
            (card.round_points, card.fantasy_team_id),
        )

    def set_round_ranks(self, round_id: int, ranks: Mapping[int, int]) -> None:
        with self.transaction() as conn:
            conn.executemany(
                "UPDATE team_round_points SET rank = ? WHERE fantasy_team_id = ? AND round_id = ?",
                [(rank, team_id, round_id) for team_id, rank in ranks.items()],
            )

    def round_points(self, round_id: int) -> dict[int, int]:
        with self._session(None) as conn:
            rows = conn.execute(
                "SELECT fantasy_team_id, points FROM team_round_points WHERE round_id = ?",
                (round_id,),
            ).fetchall()
        return {int(row["fantasy_team_id"]): int(row["points"]) for row in rows}

    def team_round_points(self, team_id: int) -> List[TeamRoundPoints]:
        with self._session(None) as conn:
            rows = conn.execute(
                "SELECT * FROM team_round_points WHERE fantasy_team_id = ? ORDER BY round_id",
                (team_id,),
            ).fetchall()
        return [
            TeamRoundPoints(
                fantasy_team_id=int(row["fantasy_team_id"]),
                round_id=int(row["round_id"]),
                points=int(row["points"]),
                rank=row["rank"],
            )
            for row in rows
        ]

    def player_round_scores(self, team_id: int, round_id: int) -> List[PlayerRoundScore]:
        with self._session(None) as conn:
            rows = conn.execute(
                """
                SELECT * FROM player_round_scores
                WHERE fantasy_team_id = ? AND round_id = ?
                ORDER BY player_id
                """,
                (team_id, round_id),
            ).fetchall()
        return [
            PlayerRoundScore(
                fantasy_team_id=int(row["fantasy_team_id"]),
                round_id=int(row["round_id"]),
                player_id=int(row["player_id"]),
                base_points=int(row["base_points"]),
                multiplier=int(row["multiplier"]),
                points=int(row["points"]),
            )
            for row in rows
        ]

    def lineup_snapshot(self, team_id: int, round_id: int) -> List[LineupEntry]:
        with self._session(None) as conn:
            rows = conn.execute(
                """
                SELECT * FROM lineup_snapshots
                WHERE fantasy_team_id = ? AND round_id = ?
                ORDER BY slot_index
                """,
                (team_id, round_id),
            ).fetchall()
        return [
            LineupEntry(
                fantasy_team_id=int(row["fantasy_team_id"]),
                round_id=int(row["round_id"]),
                slot_index=int(row["slot_index"]),
                player_id=int(row["player_id"]),
                position=row["position"],
                real_team_id=int(row["real_team_id"]),
                is_starter=bool(row["is_starter"]),
                captain_type=CaptainType(row["captain_type"]),
            )
            for row in rows
        ]

    # Row converters ------------------------------------------------------

    def _row_to_league(self, row: sqlite3.Row) -> League:
        return League(
            league_id=int(row["id"]),
            name=row["name"],
            rules=RuleSet.from_dict(json.loads(row["rules_json"])),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_player(self, row: sqlite3.Row) -> Player:
        return Player(
            player_id=int(row["id"]),
            name=row["name"],
            position=Position(row["position"]),
            real_team_id=int(row["real_team_id"]),
            price=Decimal(row["price"]),
        )

    def _row_to_team(self, conn: sqlite3.Connection, row: sqlite3.Row) -> FantasyTeam:
        slot_rows = conn.execute(
            "SELECT * FROM roster_slots WHERE fantasy_team_id = ? ORDER BY slot_index",
            (row["id"],),
        ).fetchall()
        roster = tuple(
            RosterSlot(
                slot_index=int(slot["slot_index"]),
                player_id=int(slot["player_id"]),
                is_starter=bool(slot["is_starter"]),
            )
            for slot in slot_rows
        )
        captain_type = CaptainType(row["captain_type"])
        captain = None
        if row["captain_slot"] is not None and captain_type is not CaptainType.NONE:
            captain = CaptainDesignation(int(row["captain_slot"]), captain_type)
        return FantasyTeam(
            team_id=int(row["id"]),
            league_id=int(row["league_id"]),
            owner_id=int(row["owner_id"]),
            name=row["name"],
            budget_remaining=Decimal(row["budget_remaining"]),
            roster=roster,
            total_points=int(row["total_points"]),
            captain=captain,
            triple_captain_used=bool(row["triple_captain_used"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            version=int(row["version"]),
        )

    def _row_to_round(self, row: sqlite3.Row) -> Round:
        return Round(
            round_id=int(row["id"]),
            league_id=int(row["league_id"]),
            number=int(row["number"]),
            name=row["name"],
            start_date=datetime.fromisoformat(row["start_date"]),
            end_date=datetime.fromisoformat(row["end_date"]),
            lock_time=_parse_ts(row["lock_time"]),
            transfers_open=bool(row["transfers_open"]),
            is_completed=bool(row["is_completed"]),
            opened_at=_parse_ts(row["opened_at"]),
            completed_at=_parse_ts(row["completed_at"]),
            version=int(row["version"]),
        )

    def _row_to_transfer(self, row: sqlite3.Row) -> Transfer:
        return Transfer(
            transfer_id=int(row["id"]),
            fantasy_team_id=int(row["fantasy_team_id"]),
            round_id=int(row["round_id"]),
            player_out_id=int(row["player_out_id"]),
            player_in_id=int(row["player_in_id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_stat(self, row: sqlite3.Row) -> MatchStat:
        return MatchStat(
            player_id=int(row["player_id"]),
            match_id=int(row["match_id"]),
            round_id=int(row["round_id"]),
            goals=int(row["goals"]),
            assists=int(row["assists"]),
            yellow_cards=int(row["yellow_cards"]),
            red_cards=int(row["red_cards"]),
            clean_sheet=bool(row["clean_sheet"]),
            penalty_saves=int(row["penalty_saves"]),
            minutes_played=int(row["minutes_played"]),
            bonus_points=int(row["bonus_points"]),
        )


__all__ = ["LeagueStore"]
