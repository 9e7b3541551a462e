from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mock it easily.
    """
    return datetime.now()


def iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def format_duration(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}m"


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
