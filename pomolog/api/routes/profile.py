from __future__ import annotations

from fastapi import APIRouter, Depends

from ...service import PomodoroService
from ..deps import get_service
from ..schemas import AccountDeletedOut, ProfileOut, ProfileUpdateIn

router = APIRouter(prefix="/api/v1", tags=["profile"])


@router.get("/profile", response_model=ProfileOut)
def get_profile(service: PomodoroService = Depends(get_service)) -> ProfileOut:
    return ProfileOut(**vars(service.get_profile()))


@router.put("/profile", response_model=ProfileOut)
def update_profile(payload: ProfileUpdateIn, service: PomodoroService = Depends(get_service)) -> ProfileOut:
    return ProfileOut(**vars(service.update_timezone(payload.timezone)))


@router.delete("/account", response_model=AccountDeletedOut)
def delete_account(service: PomodoroService = Depends(get_service)) -> AccountDeletedOut:
    return AccountDeletedOut(deleted_sessions=service.delete_account())
