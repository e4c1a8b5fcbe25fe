from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..clock import Clock, RealClock
from ..config import load_settings
from ..db import PomologDB
from ..errors import (
    InvalidRangeError,
    InvalidTransitionError,
    NotSignedInError,
    PomologError,
    SessionNotFoundError,
    TimezoneError,
)
from ..notifier import CompletionScheduler, NotificationConfig, Notifier
from .routes.health import router as health_router
from .routes.meta import router as meta_router
from .routes.profile import router as profile_router
from .routes.sessions import router as sessions_router
from .routes.stats import router as stats_router

logger = logging.getLogger(__name__)

ERROR_STATUS: tuple[tuple[type[PomologError], int], ...] = (
    (SessionNotFoundError, 404),
    (InvalidTransitionError, 409),
    (NotSignedInError, 401),
    (InvalidRangeError, 422),
    (TimezoneError, 400),
)


def create_app(
    db_path: Path | None = None,
    clock: Clock | None = None,
    default_timezone: str | None = None,
    notification_config: NotificationConfig | None = None,
) -> FastAPI:
    settings = load_settings()
    resolved_db = Path(db_path or settings.db_path)
    PomologDB(resolved_db, journal_mode=settings.journal_mode)

    app = FastAPI(title="pomolog API", version=__version__)
    app.state.db_path = str(resolved_db)
    app.state.clock = clock or RealClock()
    app.state.default_timezone = default_timezone or settings.timezone
    app.state.scheduler = CompletionScheduler(Notifier(config=notification_config))

    app.include_router(health_router)
    app.include_router(meta_router)
    app.include_router(sessions_router)
    app.include_router(stats_router)
    app.include_router(profile_router)

    @app.exception_handler(PomologError)
    async def handle_pomolog_error(request: Request, exc: PomologError) -> JSONResponse:
        status_code = 400
        for error_type, code in ERROR_STATUS:
            if isinstance(exc, error_type):
                status_code = code
                break
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return app

