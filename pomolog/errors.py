from __future__ import annotations


class PomologError(Exception):
    """Base class for errors raised by pomolog."""


class NotSignedInError(PomologError):
    def __init__(self, message: str = "You must be signed in to create a pomodoro.") -> None:
        super().__init__(message)


class SessionNotFoundError(PomologError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"session not found: {session_id}")
        self.session_id = session_id


class InvalidTransitionError(PomologError):
    def __init__(self, status: str, action: str) -> None:
        super().__init__(f"cannot {action} a session that is {status}")
        self.status = status
        self.action = action


class TimezoneError(PomologError):
    """Raised when an instant cannot be decomposed in the requested zone."""


class InvalidRangeError(PomologError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"unsupported stats range: {value!r}")
        self.value = value
