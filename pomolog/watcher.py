from __future__ import annotations

from dataclasses import dataclass
import logging
import sys
from typing import Callable, TextIO

from .clock import Clock
from .errors import InvalidTransitionError
from .models import STATUS_COMPLETED, STATUS_RUNNING, SessionRow
from .notifier import COMPLETION_TITLE, Notifier, completion_message
from .service import PomodoroService
from .session_clock import format_countdown

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WatchResult:
    completed: bool
    interrupted: bool
    session: SessionRow


ProgressCallback = Callable[[str, dict[str, object]], None]


class SessionWatcher:
    """Counts down a running session and completes it exactly once."""

    def __init__(
        self,
        service: PomodoroService,
        clock: Clock,
        notifier: Notifier,
        stream: TextIO | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.service = service
        self.clock = clock
        self.notifier = notifier
        self.stream = stream or sys.stdout
        self.progress_callback = progress_callback
        self._stop_requested = False
        self._completion_sent = False

    def request_stop(self) -> None:
        self._stop_requested = True

    def run(self, session: SessionRow, tick_seconds: float = 1.0) -> WatchResult:
        self._stop_requested = False
        self._completion_sent = False
        current = session
        self._emit("watch_start", session_id=session.id, title=session.title)

        while True:
            if self._stop_requested:
                return self._finish(current, completed=False, interrupted=True)

            current = self.service.get_session(current.id)
            if current.status != STATUS_RUNNING:
                self._clear_line()
                self.stream.write(f"Session is {current.status}, stopped watching.\n")
                self.stream.flush()
                return self._finish(current, completed=current.status == STATUS_COMPLETED, interrupted=False)

            remaining = self.service.remaining_seconds(current)
            if remaining <= 0:
                current = self._complete_once(current)
                return self._finish(current, completed=True, interrupted=False)

            self._render(current.title, remaining)
            self._emit("tick", session_id=current.id, remaining_sec=remaining)
            sleep_step = remaining if tick_seconds <= 0 else min(float(remaining), tick_seconds)

            try:
                self.clock.sleep(sleep_step)
            except KeyboardInterrupt:
                return self._finish(current, completed=False, interrupted=True)

    def _complete_once(self, session: SessionRow) -> SessionRow:
        if self._completion_sent:
            return session
        self._completion_sent = True
        self._clear_line()

        try:
            completed = self.service.complete_session(session)
        except InvalidTransitionError:
            # another writer already finished it
            logger.info("session %s was finished elsewhere", session.id)
            return self.service.get_session(session.id)

        self.stream.write(f"{completed.title} complete ({format_countdown(completed.planned_duration_sec)}).\n")
        self.stream.flush()
        self.notifier.notify(COMPLETION_TITLE, completion_message(completed.title))
        self._emit("completed", session_id=completed.id, completed_at=completed.completed_at)
        return completed

    def _finish(self, session: SessionRow, completed: bool, interrupted: bool) -> WatchResult:
        self._clear_line()
        if interrupted:
            self.stream.write("Stopped watching; the session keeps running.\n")
            self.stream.flush()
        self._emit("watch_end", session_id=session.id, completed=completed, interrupted=interrupted)
        return WatchResult(completed=completed, interrupted=interrupted, session=session)

    def _render(self, title: str, remaining_seconds: int) -> None:
        self.stream.write(f"\r{title} {format_countdown(remaining_seconds)} left")
        self.stream.flush()

    def _clear_line(self) -> None:
        self.stream.write("\r" + (" " * 80) + "\r")
        self.stream.flush()

    def _emit(self, event: str, **payload: object) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(event, payload)
