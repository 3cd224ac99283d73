from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.register.core.config import settings
from app.register.core.error_catalog import AppError, ErrorCatalog


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive bounds as naive UTC; either side may be None."""

    start_utc: datetime | None
    end_utc: datetime | None


def store_timezone(timezone_name: str | None = None) -> ZoneInfo | timezone:
    tz_name = timezone_name or settings.STORE_TIMEZONE
    if tz_name in ("UTC", "Z", "Etc/UTC"):
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError as exc:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "invalid timezone"}) from exc


def store_now(tz=None) -> datetime:
    return datetime.now(tz or store_timezone())


def start_of_day(day: date, tz) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def as_naive_utc(value: datetime, tz=None) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz or store_timezone())
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_bound(value: str, tz, *, upper: bool) -> datetime:
    normalized = value.strip().replace("Z", "+00:00")
    if "T" in normalized or ":" in normalized:
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError as exc:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "invalid datetime", "value": value}) from exc
        return as_naive_utc(parsed, tz)
    try:
        day = date.fromisoformat(normalized)
    except ValueError as exc:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "invalid date", "value": value}) from exc
    bound = end_of_day(day, tz) if upper else start_of_day(day, tz)
    return as_naive_utc(bound, tz)


def resolve_time_window(from_value: str | None, to_value: str | None, tz=None) -> TimeWindow:
    tz = tz or store_timezone()
    start_utc = _parse_bound(from_value, tz, upper=False) if from_value else None
    end_utc = _parse_bound(to_value, tz, upper=True) if to_value else None
    if start_utc and end_utc and end_utc < start_utc:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "to must be after from"})
    return TimeWindow(start_utc=start_utc, end_utc=end_utc)
