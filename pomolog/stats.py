"""Timezone-aware histogram of completed sessions.

Completed sessions are fetched from the row store with a padded absolute-time
window, then every timestamp is decomposed into wall-clock parts in the
requested zone and tested for exact calendar membership before it is counted.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
import logging
from typing import Iterable, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tzlocal import get_localzone

from .errors import InvalidRangeError, TimezoneError

logger = logging.getLogger(__name__)

StatsRange = Literal["day", "week", "month", "year"]
STATS_RANGES: tuple[str, ...] = ("day", "week", "month", "year")

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WINDOW_PADDING = timedelta(days=2)
EARLIEST_UTC = datetime.min.replace(tzinfo=timezone.utc)
LATEST_UTC = datetime.max.replace(tzinfo=timezone.utc)


@dataclass
class StatsBar:
    label: str
    value: int = 0


@dataclass(frozen=True)
class StatsResult:
    buckets: list[StatsBar]
    total: int


@dataclass(frozen=True)
class ZonedParts:
    year: int
    month: int
    day: int
    hour: int

    @property
    def local_date(self) -> date:
        return date(self.year, self.month, self.day)


def parse_range(value: object) -> str:
    text = str(value).strip().lower() if isinstance(value, str) else value
    if text not in STATS_RANGES:
        raise InvalidRangeError(value)
    return text  # type: ignore[return-value]


def resolve_timezone(tz: str | tzinfo | None) -> tzinfo:
    """Turn an IANA zone name into a tzinfo; ``None`` means the system zone."""
    if tz is None:
        return local_timezone()
    if isinstance(tz, tzinfo):
        return tz

    name = tz.strip()
    if not name:
        raise TimezoneError("timezone name is empty")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise TimezoneError(f"unknown timezone: {name}") from exc


def local_timezone() -> tzinfo:
    """The system zone with its DST rules.

    Only when the system zone has no IANA name do we settle for the
    current fixed offset.
    """
    try:
        return get_localzone()
    except (LookupError, ValueError) as exc:
        logger.warning("system timezone has no IANA name, using the current offset: %s", exc)
    local = datetime.now().astimezone().tzinfo
    if local is None:
        raise TimezoneError("cannot determine the local timezone")
    return local


def zoned_parts(instant: datetime, tz: tzinfo) -> ZonedParts:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    try:
        local = instant.astimezone(tz)
    except (OverflowError, ValueError) as exc:
        raise TimezoneError(f"cannot convert {instant.isoformat()} to {tz}") from exc
    return ZonedParts(year=local.year, month=local.month, day=local.day, hour=local.hour)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def monday_of(parts: ZonedParts) -> date:
    day = parts.local_date
    return day - timedelta(days=day.weekday())


def initialize_buckets(stats_range: str, anchor_parts: ZonedParts) -> list[StatsBar]:
    stats_range = parse_range(stats_range)
    if stats_range == "day":
        return [StatsBar(label=f"{hour:02d}") for hour in range(24)]
    if stats_range == "week":
        return [StatsBar(label=label) for label in WEEKDAY_LABELS]
    if stats_range == "month":
        count = days_in_month(anchor_parts.year, anchor_parts.month)
        return [StatsBar(label=str(day)) for day in range(1, count + 1)]
    return [StatsBar(label=label) for label in MONTH_LABELS]


def _range_dates(stats_range: str, parts: ZonedParts) -> tuple[date, date]:
    if stats_range == "day":
        return parts.local_date, parts.local_date
    if stats_range == "week":
        monday = monday_of(parts)
        return monday, monday + timedelta(days=6)
    if stats_range == "month":
        last = days_in_month(parts.year, parts.month)
        return date(parts.year, parts.month, 1), date(parts.year, parts.month, last)
    return date(parts.year, 1, 1), date(parts.year, 12, 31)


def query_window(
    stats_range: str, anchor: datetime, tz: str | tzinfo | None
) -> tuple[datetime, datetime]:
    """Inclusive UTC window to request from the row store.

    The local calendar boundaries are widened by two days on each side so a
    zone offset or DST shift can never push a true member outside the window.
    """
    stats_range = parse_range(stats_range)
    zone = resolve_timezone(tz)
    first, last = _range_dates(stats_range, zoned_parts(anchor, zone))

    start_local = datetime.combine(first, time.min, tzinfo=zone)
    end_local = datetime.combine(last, time.max, tzinfo=zone)
    start = _shift_utc(start_local, -WINDOW_PADDING, EARLIEST_UTC)
    end = _shift_utc(end_local, WINDOW_PADDING, LATEST_UTC)
    return start, end


def _shift_utc(local: datetime, delta: timedelta, bound: datetime) -> datetime:
    # Clamped to the representable range at the calendar edges.
    try:
        return local.astimezone(timezone.utc) + delta
    except (OverflowError, ValueError):
        return bound


def is_in_range(stats_range: str, anchor_parts: ZonedParts, item_parts: ZonedParts) -> bool:
    stats_range = parse_range(stats_range)
    if stats_range == "day":
        return (item_parts.year, item_parts.month, item_parts.day) == (
            anchor_parts.year,
            anchor_parts.month,
            anchor_parts.day,
        )
    if stats_range == "week":
        return monday_of(item_parts) == monday_of(anchor_parts)
    if stats_range == "month":
        return (item_parts.year, item_parts.month) == (anchor_parts.year, anchor_parts.month)
    return item_parts.year == anchor_parts.year


def bucket_index(stats_range: str, item_parts: ZonedParts) -> int:
    stats_range = parse_range(stats_range)
    if stats_range == "day":
        return item_parts.hour % 24
    if stats_range == "week":
        return item_parts.local_date.weekday()
    if stats_range == "month":
        return item_parts.day - 1
    return item_parts.month - 1


def aggregate(
    stats_range: str,
    anchor: datetime,
    tz: str | tzinfo | None,
    completed_at: Iterable[datetime | None],
) -> StatsResult:
    stats_range = parse_range(stats_range)
    zone = resolve_timezone(tz)
    anchor_parts = zoned_parts(anchor, zone)
    buckets = initialize_buckets(stats_range, anchor_parts)

    skipped = 0
    for instant in completed_at:
        if instant is None:
            continue
        item_parts = zoned_parts(instant, zone)
        if not is_in_range(stats_range, anchor_parts, item_parts):
            skipped += 1
            continue
        buckets[bucket_index(stats_range, item_parts)].value += 1

    if skipped:
        logger.debug("dropped %d completions outside the %s range", skipped, stats_range)

    total = sum(bucket.value for bucket in buckets)
    return StatsResult(buckets=buckets, total=total)
