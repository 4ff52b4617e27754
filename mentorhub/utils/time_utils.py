# mentorhub/utils/time_utils.py
from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalizes a datetime to aware UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_time_to_minutes(value: str) -> int:
    """'09:30' -> 570. Seconds, when present, are ignored."""
    parts = value.split(":")
    return int(parts[0]) * 60 + int(parts[1])


def format_minutes(minutes: int) -> str:
    """570 -> '09:30'"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(value: date) -> int:
    """Sunday-first weekday number (0 = Sunday) as stored on availability slots."""
    return (value.weekday() + 1) % 7
