from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol, Sequence

from .model import Holiday


class HolidayRepository(Protocol):
    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Holiday]:
        """Ordered by from_date."""
        raise NotImplementedError

    def list_overlapping(self, start: date, end: date) -> Sequence[Holiday]:
        """Non-recurring holidays touching [start, end] plus every recurring one."""
        raise NotImplementedError

    def create(self, values: dict[str, Any]) -> int:
        raise NotImplementedError

    def update(self, holiday_id: int, changes: dict[str, Any]) -> Optional[Holiday]:
        raise NotImplementedError

    def delete_by_id(self, holiday_id: int) -> bool:
        raise NotImplementedError
