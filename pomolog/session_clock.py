"""Elapsed/remaining accounting and lifecycle transitions for a session snapshot.

Every function here is pure: the caller passes ``now`` explicitly and gets
back either a number of seconds or the column updates to persist.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import math

from .errors import InvalidTransitionError
from .models import (
    STATUS_CANCELED,
    STATUS_COMPLETED,
    STATUS_CREATED,
    STATUS_PAUSED,
    STATUS_RUNNING,
    SessionRow,
)

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def delta_seconds(since: datetime, now: datetime) -> int:
    """Whole seconds from ``since`` to ``now``, floored and never negative."""
    raw = (_aware(now) - _aware(since)).total_seconds()
    return max(0, math.floor(raw))


def elapsed_seconds(session: SessionRow, now: datetime) -> int:
    if session.status == STATUS_CREATED:
        return 0

    paused_total = max(0, session.paused_total_sec)
    if session.status != STATUS_RUNNING:
        # paused, and terminal sessions whose elapsed time froze at the transition
        return paused_total

    if session.last_resumed_at is None:
        logger.debug("session %s is running without last_resumed_at", session.id)
        return paused_total

    return paused_total + delta_seconds(session.last_resumed_at, now)


def remaining_seconds(session: SessionRow, now: datetime) -> int:
    return max(0, session.planned_duration_sec - elapsed_seconds(session, now))


def _live_delta(session: SessionRow, now: datetime) -> int:
    if session.status != STATUS_RUNNING or session.last_resumed_at is None:
        return 0
    return delta_seconds(session.last_resumed_at, now)


def _ensure_not_terminal(session: SessionRow, action: str) -> None:
    if session.is_terminal:
        raise InvalidTransitionError(session.status, action)


def start_updates(session: SessionRow, now: datetime) -> dict[str, object]:
    _ensure_not_terminal(session, "start")
    if session.status == STATUS_RUNNING:
        raise InvalidTransitionError(session.status, "start")

    if session.status == STATUS_CREATED:
        return {
            "status": STATUS_RUNNING,
            "started_at": now,
            "last_resumed_at": now,
        }
    return {
        "status": STATUS_RUNNING,
        "last_resumed_at": now,
    }


def pause_updates(session: SessionRow, now: datetime) -> dict[str, object]:
    if session.status != STATUS_RUNNING or session.last_resumed_at is None:
        return {}
    return {
        "status": STATUS_PAUSED,
        "paused_total_sec": max(0, session.paused_total_sec) + _live_delta(session, now),
        "last_resumed_at": None,
    }


def complete_updates(session: SessionRow, now: datetime) -> dict[str, object]:
    _ensure_not_terminal(session, "complete")
    return {
        "status": STATUS_COMPLETED,
        "completed_at": now,
        "paused_total_sec": max(0, session.paused_total_sec) + _live_delta(session, now),
        "last_resumed_at": None,
    }


def cancel_updates(session: SessionRow, now: datetime) -> dict[str, object]:
    _ensure_not_terminal(session, "cancel")
    return {
        "status": STATUS_CANCELED,
        "paused_total_sec": max(0, session.paused_total_sec) + _live_delta(session, now),
        "last_resumed_at": None,
    }


def format_countdown(seconds: int) -> str:
    total = max(0, seconds)
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{sec:02d}"
    return f"{minutes:02d}:{sec:02d}"
