from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import format_duration, iso
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One user's attendance for one day."""

    id: int
    user_id: int
    date: date
    punchin: Optional[datetime]
    punchout: Optional[datetime]
    status: AttendanceStatus
    punchin_location: Optional[dict] = None
    punchout_location: Optional[dict] = None
    notes: Optional[str] = None

    @property
    def worked_minutes(self) -> Optional[int]:
        if not self.punchin or not self.punchout:
            return None
        return max(0, int((self.punchout - self.punchin).total_seconds() // 60))

    def to_dict(self) -> dict[str, Any]:
        minutes = self.worked_minutes
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": iso(self.date),
            "punchin": iso(self.punchin),
            "punchout": iso(self.punchout),
            "punchin_location": self.punchin_location,
            "punchout_location": self.punchout_location,
            "status": self.status.value,
            "notes": self.notes,
            "work_duration": format_duration(minutes) if minutes is not None else None,
        }


@dataclass(frozen=True)
class TimesheetRow:
    """Read-model joining a record with the employee it belongs to."""

    record: AttendanceRecord
    user_name: str
    employee_id: Optional[str]
    department_id: Optional[int]

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.record.to_dict(),
            "user": {"id": self.record.user_id, "name": self.user_name, "employee_id": self.employee_id},
            "department_id": self.department_id,
        }
