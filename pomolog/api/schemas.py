from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SessionOut(BaseModel):
    id: str
    user_id: str
    title: str
    planned_duration_sec: int
    status: str
    started_at: datetime | None = None
    last_resumed_at: datetime | None = None
    paused_total_sec: int
    completed_at: datetime | None = None
    created_at: datetime
    elapsed_sec: int
    remaining_sec: int


class SessionCreateIn(BaseModel):
    title: str = Field(default="", max_length=200)
    start: bool = False


class StatsBarOut(BaseModel):
    label: str
    value: int = Field(ge=0)


class StatsOut(BaseModel):
    range: str
    timezone: str
    anchor: datetime
    buckets: list[StatsBarOut]
    total: int


class ProfileOut(BaseModel):
    id: str
    display_name: str | None = None
    timezone: str


class ProfileUpdateIn(BaseModel):
    timezone: str = Field(min_length=1)


class AccountDeletedOut(BaseModel):
    deleted_sessions: int


class HealthOut(BaseModel):
    status: str = Field(default="ok")


class MetaOut(BaseModel):
    app: str
    version: str
    db_path: str
    platform: str
