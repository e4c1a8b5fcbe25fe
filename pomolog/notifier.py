from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import platform
import shutil
import subprocess
import sys
from threading import Lock, Timer
from typing import TextIO
import uuid

logger = logging.getLogger(__name__)

COMPLETION_TITLE = "Pomodoro complete"


@dataclass(frozen=True)
class NotificationConfig:
    channel_id: str = "pomodoro-completion"
    channel_name: str = "Pomodoro completion"
    enabled: bool = True
    sound: bool = True


def completion_message(title: str | None = None) -> str:
    cleaned = (title or "").strip()
    if cleaned:
        return f"{cleaned} is complete. Take a break."
    return "Your focus session is complete. Take a break."


class Notifier:
    def __init__(self, config: NotificationConfig | None = None, stream: TextIO | None = None) -> None:
        self.config = config or NotificationConfig()
        self.stream = stream or sys.stdout

    def notify(self, title: str, message: str) -> None:
        if not self.config.enabled:
            return

        sent = False
        system_name = platform.system().lower()

        try:
            if system_name == "darwin" and shutil.which("osascript"):
                script = (
                    "display notification "
                    f"\"{self._escape(message)}\" with title \"{self._escape(title)}\""
                )
                if self.config.sound:
                    script += ' sound name "default"'
                result = subprocess.run(
                    ["osascript", "-e", script],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                sent = result.returncode == 0
            elif system_name == "linux" and shutil.which("notify-send"):
                result = subprocess.run(
                    ["notify-send", "--category", self.config.channel_id, title, message],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                sent = result.returncode == 0
        except OSError as exc:
            logger.warning("desktop notification failed: %s", exc)
            sent = False

        if not sent:
            self.stream.write(f"[{self.config.channel_name}] {title}: {message}\n")
            self.stream.flush()

    @staticmethod
    def _escape(text: str) -> str:
        return text.replace("\\", "\\\\").replace('"', '\\"')


class CompletionScheduler:
    """Delivers the completion notification after a delay, cancellable by id.

    A notification may be tied to a key (a session id) so that rescheduling or
    cancelling by key replaces it; the key is released once the notification
    fires or is cancelled.
    """

    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier
        self._lock = Lock()
        self._pending: dict[str, Timer] = {}
        self._keys: dict[str, str] = {}

    def schedule(
        self, seconds_from_now: float, title: str | None = None, key: str | None = None
    ) -> str | None:
        if key is not None:
            self.cancel_key(key)
        if seconds_from_now <= 0 or not self.notifier.config.enabled:
            return None

        notification_id = uuid.uuid4().hex
        delay = max(1, math.ceil(seconds_from_now))
        timer = Timer(delay, self._fire, args=(notification_id, completion_message(title)))
        timer.daemon = True
        with self._lock:
            self._pending[notification_id] = timer
            if key is not None:
                self._keys[key] = notification_id
        timer.start()
        logger.debug("scheduled notification %s in %ss", notification_id, delay)
        return notification_id

    def cancel(self, notification_id: str | None) -> None:
        if not notification_id:
            return
        with self._lock:
            timer = self._release(notification_id)
        if timer is not None:
            timer.cancel()

    def cancel_key(self, key: str) -> None:
        with self._lock:
            notification_id = self._keys.get(key)
        self.cancel(notification_id)

    def pending(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def pending_for(self, key: str) -> str | None:
        with self._lock:
            return self._keys.get(key)

    def _release(self, notification_id: str) -> Timer | None:
        # Caller holds the lock.
        timer = self._pending.pop(notification_id, None)
        for key in [k for k, v in self._keys.items() if v == notification_id]:
            del self._keys[key]
        return timer

    def _fire(self, notification_id: str, message: str) -> None:
        with self._lock:
            if self._release(notification_id) is None:
                return
        self.notifier.notify(COMPLETION_TITLE, message)
