from __future__ import annotations

from datetime import datetime, tzinfo
import logging

from . import session_clock
from .auth import require_user_id
from .clock import Clock
from .db import PomologDB
from .errors import SessionNotFoundError
from .models import (
    DEFAULT_FOCUS_SECONDS,
    DEFAULT_PROFILE_TIMEZONE,
    DEFAULT_SESSION_TITLE,
    Profile,
    SessionRow,
)
from .stats import StatsResult, aggregate, parse_range, query_window, resolve_timezone

logger = logging.getLogger(__name__)


class PomodoroService:
    """Session management glue between the row store and the pure core.

    The signed-in user, the clock and the fallback timezone are passed in
    explicitly; nothing is read from module state.
    """

    def __init__(
        self,
        db: PomologDB,
        clock: Clock,
        user_id: str | None = None,
        default_timezone: str | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.user_id = user_id.strip() if user_id and user_id.strip() else None
        self.default_timezone = default_timezone

    def create_session(self, title: str = DEFAULT_SESSION_TITLE) -> SessionRow:
        user_id = require_user_id(self.user_id)
        cleaned_title = title.strip() or DEFAULT_SESSION_TITLE
        session = self.db.insert_session(
            user_id=user_id,
            title=cleaned_title,
            planned_duration_sec=DEFAULT_FOCUS_SECONDS,
            created_at=self.clock.now(),
        )
        logger.info("created session %s for %s", session.id, user_id)
        return session

    def get_active_session(self) -> SessionRow | None:
        return self.db.get_active_session(require_user_id(self.user_id))

    def get_session(self, session_id: str) -> SessionRow:
        session = self.db.get_session(session_id)
        if session is None or session.user_id != self.user_id:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self, limit: int = 20) -> list[SessionRow]:
        return self.db.list_sessions(require_user_id(self.user_id), limit=limit)

    def start_session(self, session: SessionRow) -> SessionRow:
        updates = session_clock.start_updates(session, self.clock.now())
        return self._persist(session, updates, "started")

    def pause_session(self, session: SessionRow) -> SessionRow:
        updates = session_clock.pause_updates(session, self.clock.now())
        if not updates:
            return session
        return self._persist(session, updates, "paused")

    def complete_session(self, session: SessionRow) -> SessionRow:
        updates = session_clock.complete_updates(session, self.clock.now())
        return self._persist(session, updates, "completed")

    def cancel_session(self, session: SessionRow) -> SessionRow:
        updates = session_clock.cancel_updates(session, self.clock.now())
        return self._persist(session, updates, "canceled")

    def remaining_seconds(self, session: SessionRow) -> int:
        return session_clock.remaining_seconds(session, self.clock.now())

    def elapsed_seconds(self, session: SessionRow) -> int:
        return session_clock.elapsed_seconds(session, self.clock.now())

    def resolve_timezone_name(self, tz: str | None = None) -> str | None:
        if tz and tz.strip():
            return tz.strip()
        if self.user_id is not None:
            profile = self.db.get_profile(self.user_id)
            if profile is not None and profile.timezone:
                return profile.timezone
        return self.default_timezone

    def get_stats(
        self,
        stats_range: str,
        anchor: datetime | None = None,
        tz: str | tzinfo | None = None,
    ) -> StatsResult:
        stats_range = parse_range(stats_range)
        ref = anchor or self.clock.now()
        if isinstance(tz, tzinfo):
            zone = tz
        else:
            zone = resolve_timezone(self.resolve_timezone_name(tz))

        start, end = query_window(stats_range, ref, zone)
        timestamps = self.db.fetch_completed_timestamps(start, end, user_id=self.user_id)
        result = aggregate(stats_range, ref, zone, timestamps)
        logger.debug(
            "stats %s in %s: %d fetched, %d counted", stats_range, zone, len(timestamps), result.total
        )
        return result

    def get_profile(self) -> Profile:
        user_id = require_user_id(self.user_id)
        profile = self.db.get_profile(user_id)
        if profile is None:
            return Profile(id=user_id, timezone=self.default_timezone or DEFAULT_PROFILE_TIMEZONE)
        return profile

    def update_timezone(self, name: str) -> Profile:
        user_id = require_user_id(self.user_id)
        cleaned = name.strip()
        resolve_timezone(cleaned)
        current = self.db.get_profile(user_id)
        display_name = current.display_name if current is not None else None
        profile = self.db.upsert_profile(Profile(id=user_id, display_name=display_name, timezone=cleaned))
        logger.info("timezone for %s set to %s", user_id, cleaned)
        return profile

    def delete_account(self) -> int:
        user_id = require_user_id(self.user_id)
        removed = self.db.delete_user_data(user_id)
        logger.info("deleted account data for %s (%d sessions)", user_id, removed)
        return removed

    def _persist(self, session: SessionRow, updates: dict[str, object], action: str) -> SessionRow:
        updated = self.db.update_session(session.id, updates)
        logger.info("session %s %s", session.id, action)
        return updated
