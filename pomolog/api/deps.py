from __future__ import annotations

from pathlib import Path

from fastapi import Depends, Header, HTTPException, Request

from ..db import PomologDB
from ..notifier import CompletionScheduler
from ..service import PomodoroService


def get_db(request: Request) -> PomologDB:
    db_path = Path(request.app.state.db_path)
    return PomologDB(db_path)


def get_user_id(user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=400, detail="Missing X-User-Id header")
    return user_id.strip()


def get_service(
    request: Request,
    db: PomologDB = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> PomodoroService:
    return PomodoroService(
        db=db,
        clock=request.app.state.clock,
        user_id=user_id,
        default_timezone=request.app.state.default_timezone,
    )


def get_scheduler(request: Request) -> CompletionScheduler:
    return request.app.state.scheduler
