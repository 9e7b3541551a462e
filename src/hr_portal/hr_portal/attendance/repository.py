from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol, Sequence

from .model import AttendanceRecord, TimesheetRow


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, values: dict[str, Any]) -> int:
        raise NotImplementedError

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def timesheet(
        self,
        work_date: date,
        *,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 30,
    ) -> tuple[Sequence[TimesheetRow], int]:
        raise NotImplementedError

    def user_ids_on(self, work_date: date) -> set[int]:
        raise NotImplementedError
