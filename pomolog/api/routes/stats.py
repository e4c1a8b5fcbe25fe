from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from ...service import PomodoroService
from ...stats import parse_range, resolve_timezone
from ..deps import get_service
from ..schemas import StatsBarOut, StatsOut

router = APIRouter(prefix="/api/v1", tags=["stats"])


@router.get("/stats", response_model=StatsOut)
def get_stats(
    stats_range: str = Query(default="week", alias="range"),
    anchor: datetime | None = None,
    tz: str | None = None,
    service: PomodoroService = Depends(get_service),
) -> StatsOut:
    stats_range = parse_range(stats_range)
    zone_name = service.resolve_timezone_name(tz)
    zone = resolve_timezone(zone_name)
    ref = anchor or service.clock.now()
    if ref.tzinfo is None:
        ref = ref.replace(tzinfo=timezone.utc)

    result = service.get_stats(stats_range, anchor=ref, tz=zone)
    return StatsOut(
        range=stats_range,
        timezone=zone_name or str(zone),
        anchor=ref,
        buckets=[StatsBarOut(label=bar.label, value=bar.value) for bar in result.buckets],
        total=result.total,
    )
