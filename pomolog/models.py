from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

DEFAULT_FOCUS_SECONDS = 25 * 60
DEFAULT_SESSION_TITLE = "Focus Session"
DEFAULT_PROFILE_TIMEZONE = "UTC"

STATUS_CREATED = "created"
STATUS_RUNNING = "running"
STATUS_PAUSED = "paused"
STATUS_COMPLETED = "completed"
STATUS_CANCELED = "canceled"

SESSION_STATUSES = (
    STATUS_CREATED,
    STATUS_RUNNING,
    STATUS_PAUSED,
    STATUS_COMPLETED,
    STATUS_CANCELED,
)
ACTIVE_STATUSES = (STATUS_CREATED, STATUS_RUNNING, STATUS_PAUSED)
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELED)


@dataclass(frozen=True)
class SessionRow:
    """Snapshot of one persisted pomodoro session.

    ``last_resumed_at`` is set only while the session is running.
    ``paused_total_sec`` holds the active seconds accumulated up to the last
    pause/resume boundary.
    """

    id: str
    user_id: str
    title: str
    planned_duration_sec: int
    status: str
    started_at: datetime | None
    last_resumed_at: datetime | None
    paused_total_sec: int
    completed_at: datetime | None
    created_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def with_updates(self, **changes: object) -> SessionRow:
        return replace(self, **changes)


@dataclass(frozen=True)
class Profile:
    id: str
    display_name: str | None = None
    timezone: str = DEFAULT_PROFILE_TIMEZONE
