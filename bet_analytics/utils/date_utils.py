"""Date manipulation utilities"""

from datetime import datetime, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to an aware UTC datetime (naive values are assumed to already be UTC)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def year_month(moment: datetime, tz_name: str = "UTC") -> Tuple[int, int]:
    """Calendar (year, month) of a settlement instant in the given zone"""
    local = ensure_utc(moment).astimezone(ZoneInfo(tz_name))
    return local.year, local.month


def earliest(current: Optional[datetime], candidate: datetime) -> datetime:
    """Oldest of two instants, tolerating a missing current value"""
    if current is None:
        return ensure_utc(candidate)
    return min(ensure_utc(current), ensure_utc(candidate))


def latest(current: Optional[datetime], candidate: datetime) -> datetime:
    """Most recent of two instants, tolerating a missing current value"""
    if current is None:
        return ensure_utc(candidate)
    return max(ensure_utc(current), ensure_utc(candidate))
