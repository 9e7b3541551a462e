from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ..common.datetime_utils import iso


@dataclass(frozen=True)
class Holiday:
    id: int
    title: str
    from_date: date
    to_date: date
    type: str = "public"
    description: Optional[str] = None
    is_recurring: bool = False
    is_active: bool = True

    @property
    def duration_days(self) -> int:
        return (self.to_date - self.from_date).days + 1

    def covers(self, day: date) -> bool:
        """Recurring holidays repeat on the same month/day every year."""
        if not self.is_active:
            return False
        if not self.is_recurring:
            return self.from_date <= day <= self.to_date

        start = (self.from_date.month, self.from_date.day)
        end = (self.to_date.month, self.to_date.day)
        key = (day.month, day.day)
        if start <= end:
            return start <= key <= end
        # spans new year, e.g. Dec 31 - Jan 2
        return key >= start or key <= end

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "from_date": iso(self.from_date),
            "to_date": iso(self.to_date),
            "type": self.type,
            "is_recurring": self.is_recurring,
            "is_active": self.is_active,
            "duration": self.duration_days,
        }
