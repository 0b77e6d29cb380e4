"""Persistence layer for roster players and event schedules."""

from __future__ import annotations

import json
import os
import sqlite3
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional
from uuid import uuid4

from rallyplan.models import (
    AttackPlayerSummary,
    PlayerRecord,
    Schedule,
    ScheduleSettings,
    SlotAssignment,
)


class ScheduleStore:
    """Simple SQLite-backed document store for players and schedules.

    Every write replaces a whole document, so concurrent admins get
    last-write-wins semantics.
    """

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        env_db = os.getenv("RALLYPLAN_DB_PATH")
        if env_db:
            if env_db.startswith("file:"):
                self.db_path = env_db
                self._use_uri = True
            else:
                self.db_path = Path(env_db)
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(self.db_path)
            except sqlite3.OperationalError:
                fallback_dir = Path(tempfile.gettempdir()) / "rallyplan-runtime"
                fallback_dir.mkdir(parents=True, exist_ok=True)
                fallback = fallback_dir / "rallyplan.sqlite"
                conn = sqlite3.connect(fallback)
                self.db_path = fallback
                self._create_schema(conn)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                id TEXT PRIMARY KEY,
                is_attack INTEGER NOT NULL,
                player_json TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schedules (
                id TEXT PRIMARY KEY,
                event_date TEXT NOT NULL UNIQUE,
                buildings_json TEXT NOT NULL,
                attack_players_json TEXT NOT NULL,
                settings_json TEXT NOT NULL,
                created_by TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.commit()

    # Players

    def upsert_player(self, player: PlayerRecord) -> PlayerRecord:
        now = datetime.now(timezone.utc)
        stored = player.model_copy(
            update={"created_at": player.created_at or now, "updated_at": now}
        )
        with self._connect() as conn:
            existing = conn.execute(
                "SELECT player_json FROM players WHERE id = ?", (player.player_id,)
            ).fetchone()
            if existing is not None and player.created_at is None:
                previous = PlayerRecord.model_validate_json(existing["player_json"])
                stored = stored.model_copy(update={"created_at": previous.created_at})
            conn.execute(
                """
                INSERT INTO players (id, is_attack, player_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    is_attack = excluded.is_attack,
                    player_json = excluded.player_json,
                    updated_at = excluded.updated_at
                """,
                (
                    stored.player_id,
                    int(stored.is_attack),
                    stored.model_dump_json(by_alias=True),
                    now.isoformat(),
                ),
            )
            conn.commit()
        return stored

    def get_player(self, player_id: str) -> Optional[PlayerRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT player_json FROM players WHERE id = ?", (player_id,)).fetchone()
        if row is None:
            return None
        return PlayerRecord.model_validate_json(row["player_json"])

    def list_players(self, *, is_attack: Optional[bool] = None) -> List[PlayerRecord]:
        query = "SELECT player_json FROM players"
        params: tuple = ()
        if is_attack is not None:
            query += " WHERE is_attack = ?"
            params = (int(is_attack),)
        query += " ORDER BY rowid"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [PlayerRecord.model_validate_json(row["player_json"]) for row in rows]

    def delete_player(self, player_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
            conn.commit()
            return cursor.rowcount > 0

    # Schedules

    def save_schedule(self, schedule: Schedule) -> Schedule:
        if self.get_schedule_by_event_date(schedule.event_date) is not None:
            raise ValueError(f"A schedule for {schedule.event_date.isoformat()} already exists")
        schedule_id = schedule.schedule_id or uuid4().hex
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO schedules (
                    id, event_date, buildings_json, attack_players_json,
                    settings_json, created_by, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    schedule_id,
                    schedule.event_date.isoformat(),
                    _dump_list(schedule.buildings),
                    _dump_list(schedule.attack_players),
                    schedule.settings.model_dump_json(by_alias=True, exclude_none=True),
                    schedule.created_by,
                    now,
                    now,
                ),
            )
            conn.commit()
        saved = self.get_schedule(schedule_id)
        if saved is None:  # pragma: no cover
            raise KeyError(f"Schedule {schedule_id} not found after insert")
        return saved

    def update_schedule(
        self,
        schedule_id: str,
        *,
        buildings: Iterable[SlotAssignment],
        attack_players: Iterable[AttackPlayerSummary],
        settings: ScheduleSettings | None = None,
    ) -> Schedule:
        current = self.get_schedule(schedule_id)
        if current is None:
            raise KeyError(f"Schedule {schedule_id} not found")
        updated_settings = settings if settings is not None else current.settings
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE schedules
                SET buildings_json = ?,
                    attack_players_json = ?,
                    settings_json = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    _dump_list(buildings),
                    _dump_list(attack_players),
                    updated_settings.model_dump_json(by_alias=True, exclude_none=True),
                    now,
                    schedule_id,
                ),
            )
            conn.commit()
        updated = self.get_schedule(schedule_id)
        if updated is None:  # pragma: no cover
            raise KeyError(f"Schedule {schedule_id} not found after update")
        return updated

    def get_schedule(self, schedule_id: str) -> Optional[Schedule]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM schedules WHERE id = ?", (schedule_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_schedule(row)

    def get_schedule_by_event_date(self, event_date: date) -> Optional[Schedule]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM schedules WHERE event_date = ?", (event_date.isoformat(),)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_schedule(row)

    def list_schedules(self, limit: int = 50) -> List[Schedule]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM schedules ORDER BY event_date DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._row_to_schedule(row) for row in rows]

    def delete_schedule(self, schedule_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM schedules WHERE id = ?", (schedule_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_schedule(self, row: sqlite3.Row) -> Schedule:
        return Schedule(
            schedule_id=row["id"],
            event_date=date.fromisoformat(row["event_date"]),
            buildings=tuple(
                SlotAssignment.model_validate(item) for item in json.loads(row["buildings_json"])
            ),
            attack_players=tuple(
                AttackPlayerSummary.model_validate(item)
                for item in json.loads(row["attack_players_json"])
            ),
            settings=ScheduleSettings.model_validate_json(row["settings_json"]),
            created_by=row["created_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def _dump_list(items: Iterable) -> str:
    return json.dumps([item.model_dump(by_alias=True, mode="json") for item in items])


__all__ = ["ScheduleStore"]
