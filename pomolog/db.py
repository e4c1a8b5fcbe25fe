from __future__ import annotations

from datetime import datetime, timezone
import os
from pathlib import Path
import sqlite3
import uuid

from .errors import SessionNotFoundError
from .models import (
    ACTIVE_STATUSES,
    DEFAULT_FOCUS_SECONDS,
    DEFAULT_PROFILE_TIMEZONE,
    STATUS_COMPLETED,
    STATUS_CREATED,
    Profile,
    SessionRow,
)

UTC_TEXT_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

SESSION_COLUMNS = (
    "id",
    "user_id",
    "title",
    "planned_duration_sec",
    "status",
    "started_at",
    "last_resumed_at",
    "paused_total_sec",
    "completed_at",
    "created_at",
)
UPDATABLE_COLUMNS = frozenset(
    {
        "title",
        "planned_duration_sec",
        "status",
        "started_at",
        "last_resumed_at",
        "paused_total_sec",
        "completed_at",
    }
)
_TIME_COLUMNS = frozenset({"started_at", "last_resumed_at", "completed_at", "created_at"})


def to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc).replace(tzinfo=None)
    # isoformat pads the year to four digits where strftime may not.
    return value.isoformat(timespec="microseconds") + "Z"


def from_utc_text(text: str) -> datetime:
    return datetime.strptime(text, UTC_TEXT_FORMAT).replace(tzinfo=timezone.utc)


def _optional_time(text: str | None) -> datetime | None:
    return from_utc_text(text) if text else None


class PomologDB:
    """SQLite row store holding session rows and user profiles."""

    def __init__(self, db_path: Path, journal_mode: str | None = None) -> None:
        self.db_path = Path(db_path)
        raw_mode = (journal_mode or os.getenv("POMOLOG_JOURNAL_MODE") or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        self._apply_journal_mode(conn)
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    def init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS pomodoro_sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    planned_duration_sec INTEGER NOT NULL,
                    status TEXT NOT NULL CHECK (
                        status IN ('created', 'running', 'paused', 'completed', 'canceled')
                    ),
                    started_at TEXT,
                    last_resumed_at TEXT,
                    paused_total_sec INTEGER NOT NULL DEFAULT 0 CHECK (paused_total_sec >= 0),
                    completed_at TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_sessions_user_status
                ON pomodoro_sessions(user_id, status)
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_sessions_completed_at
                ON pomodoro_sessions(completed_at)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    display_name TEXT,
                    timezone TEXT NOT NULL DEFAULT 'UTC'
                )
                """
            )
            conn.commit()

    def insert_session(
        self,
        user_id: str,
        title: str,
        planned_duration_sec: int = DEFAULT_FOCUS_SECONDS,
        created_at: datetime | None = None,
    ) -> SessionRow:
        session_id = uuid.uuid4().hex
        created = created_at or datetime.now(tz=timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO pomodoro_sessions (
                    id,
                    user_id,
                    title,
                    planned_duration_sec,
                    status,
                    paused_total_sec,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, 0, ?)
                """,
                (
                    session_id,
                    user_id,
                    title,
                    int(planned_duration_sec),
                    STATUS_CREATED,
                    to_utc_text(created),
                ),
            )
            conn.commit()
        return self._require_session(session_id)

    def update_session(self, session_id: str, updates: dict[str, object]) -> SessionRow:
        unknown = set(updates) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"cannot update columns: {', '.join(sorted(unknown))}")
        if not updates:
            return self._require_session(session_id)

        assignments: list[str] = []
        params: list[object] = []
        for column, value in updates.items():
            assignments.append(f"{column} = ?")
            if column in _TIME_COLUMNS and isinstance(value, datetime):
                params.append(to_utc_text(value))
            else:
                params.append(value)
        params.append(session_id)

        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE pomodoro_sessions SET {', '.join(assignments)} WHERE id = ?",
                params,
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise SessionNotFoundError(session_id)
        return self._require_session(session_id)

    def get_session(self, session_id: str) -> SessionRow | None:
        rows = self._read_sessions(
            f"SELECT {', '.join(SESSION_COLUMNS)} FROM pomodoro_sessions WHERE id = ?",
            [session_id],
        )
        return rows[0] if rows else None

    def get_active_session(self, user_id: str) -> SessionRow | None:
        placeholders = ", ".join("?" for _ in ACTIVE_STATUSES)
        rows = self._read_sessions(
            f"SELECT {', '.join(SESSION_COLUMNS)} FROM pomodoro_sessions "
            f"WHERE user_id = ? AND status IN ({placeholders}) "
            "ORDER BY created_at DESC LIMIT 1",
            [user_id, *ACTIVE_STATUSES],
        )
        return rows[0] if rows else None

    def list_sessions(self, user_id: str, limit: int = 20) -> list[SessionRow]:
        safe_limit = max(1, min(2000, int(limit)))
        return self._read_sessions(
            f"SELECT {', '.join(SESSION_COLUMNS)} FROM pomodoro_sessions "
            "WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
            [user_id, safe_limit],
        )

    def fetch_completed_timestamps(
        self,
        start: datetime,
        end: datetime,
        user_id: str | None = None,
    ) -> list[datetime]:
        clauses = [
            "status = ?",
            "completed_at IS NOT NULL",
            "completed_at >= ?",
            "completed_at <= ?",
        ]
        params: list[object] = [STATUS_COMPLETED, to_utc_text(start), to_utc_text(end)]
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)

        query = (
            "SELECT completed_at FROM pomodoro_sessions "
            f"WHERE {' AND '.join(clauses)} "
            "ORDER BY completed_at ASC"
        )
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [from_utc_text(row["completed_at"]) for row in rows]

    def get_profile(self, user_id: str) -> Profile | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, display_name, timezone FROM profiles WHERE id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return Profile(
            id=row["id"],
            display_name=row["display_name"],
            timezone=row["timezone"] or DEFAULT_PROFILE_TIMEZONE,
        )

    def upsert_profile(self, profile: Profile) -> Profile:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO profiles (id, display_name, timezone)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    display_name = excluded.display_name,
                    timezone = excluded.timezone
                """,
                (profile.id, profile.display_name, profile.timezone),
            )
            conn.commit()
        return profile

    def delete_user_data(self, user_id: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM pomodoro_sessions WHERE user_id = ?", (user_id,))
            conn.execute("DELETE FROM profiles WHERE id = ?", (user_id,))
            conn.commit()
            return int(cursor.rowcount)

    def _require_session(self, session_id: str) -> SessionRow:
        item = self.get_session(session_id)
        if item is None:
            raise SessionNotFoundError(session_id)
        return item

    def _read_sessions(self, query: str, params: list[object]) -> list[SessionRow]:
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        items: list[SessionRow] = []
        for row in rows:
            items.append(
                SessionRow(
                    id=row["id"],
                    user_id=row["user_id"],
                    title=row["title"] or "",
                    planned_duration_sec=int(row["planned_duration_sec"]),
                    status=row["status"],
                    started_at=_optional_time(row["started_at"]),
                    last_resumed_at=_optional_time(row["last_resumed_at"]),
                    paused_total_sec=int(row["paused_total_sec"]),
                    completed_at=_optional_time(row["completed_at"]),
                    created_at=from_utc_text(row["created_at"]),
                )
            )
        return items


def default_db_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "pomolog.sqlite"
