from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...models import SessionRow
from ...notifier import CompletionScheduler
from ...service import PomodoroService
from ..deps import get_scheduler, get_service
from ..schemas import SessionCreateIn, SessionOut

router = APIRouter(prefix="/api/v1", tags=["sessions"])


def to_session_out(service: PomodoroService, session: SessionRow) -> SessionOut:
    return SessionOut(
        **vars(session),
        elapsed_sec=service.elapsed_seconds(session),
        remaining_sec=service.remaining_seconds(session),
    )


def _schedule_completion(scheduler: CompletionScheduler, service: PomodoroService, session: SessionRow) -> None:
    scheduler.schedule(service.remaining_seconds(session), session.title, key=session.id)


@router.get("/sessions", response_model=list[SessionOut])
def list_sessions(
    limit: int = Query(default=30, ge=1, le=2000),
    service: PomodoroService = Depends(get_service),
) -> list[SessionOut]:
    return [to_session_out(service, item) for item in service.list_sessions(limit=limit)]


@router.post("/sessions", response_model=SessionOut, status_code=201)
def create_session(
    payload: SessionCreateIn,
    service: PomodoroService = Depends(get_service),
    scheduler: CompletionScheduler = Depends(get_scheduler),
) -> SessionOut:
    session = service.create_session(payload.title)
    if payload.start:
        session = service.start_session(session)
        _schedule_completion(scheduler, service, session)
    return to_session_out(service, session)


@router.get("/sessions/active", response_model=SessionOut | None)
def get_active_session(service: PomodoroService = Depends(get_service)) -> SessionOut | None:
    session = service.get_active_session()
    if session is None:
        return None
    return to_session_out(service, session)


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str, service: PomodoroService = Depends(get_service)) -> SessionOut:
    return to_session_out(service, service.get_session(session_id))


@router.post("/sessions/{session_id}/start", response_model=SessionOut)
def start_session(
    session_id: str,
    service: PomodoroService = Depends(get_service),
    scheduler: CompletionScheduler = Depends(get_scheduler),
) -> SessionOut:
    session = service.start_session(service.get_session(session_id))
    _schedule_completion(scheduler, service, session)
    return to_session_out(service, session)


@router.post("/sessions/{session_id}/pause", response_model=SessionOut)
def pause_session(
    session_id: str,
    service: PomodoroService = Depends(get_service),
    scheduler: CompletionScheduler = Depends(get_scheduler),
) -> SessionOut:
    session = service.pause_session(service.get_session(session_id))
    scheduler.cancel_key(session.id)
    return to_session_out(service, session)


@router.post("/sessions/{session_id}/complete", response_model=SessionOut)
def complete_session(
    session_id: str,
    service: PomodoroService = Depends(get_service),
    scheduler: CompletionScheduler = Depends(get_scheduler),
) -> SessionOut:
    session = service.complete_session(service.get_session(session_id))
    scheduler.cancel_key(session.id)
    return to_session_out(service, session)


@router.post("/sessions/{session_id}/cancel", response_model=SessionOut)
def cancel_session(
    session_id: str,
    service: PomodoroService = Depends(get_service),
    scheduler: CompletionScheduler = Depends(get_scheduler),
) -> SessionOut:
    session = service.cancel_session(service.get_session(session_id))
    scheduler.cancel_key(session.id)
    return to_session_out(service, session)
