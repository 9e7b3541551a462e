from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import iso


@dataclass(frozen=True)
class Jurisdiction:
    """A stretch of road [start_chainage, end_chainage] owned by one incharge."""

    id: int
    location: str
    start_chainage: str
    end_chainage: str
    incharge: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "location": self.location,
            "start_chainage": self.start_chainage,
            "end_chainage": self.end_chainage,
            "incharge": self.incharge,
        }


@dataclass(frozen=True)
class DailyWork:
    id: int
    date: date
    number: str
    status: str
    type: str
    description: str
    location: str
    side: str
    planned_time: str
    incharge: Optional[int] = None
    assigned: Optional[int] = None
    qty_layer: Optional[str] = None
    completion_time: Optional[datetime] = None
    inspection_details: Optional[str] = None
    inspection_result: Optional[str] = None
    resubmission_count: int = 0
    resubmission_date: Optional[str] = None
    rfi_submission_date: Optional[date] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": iso(self.date),
            "number": self.number,
            "status": self.status,
            "type": self.type,
            "description": self.description,
            "location": self.location,
            "side": self.side,
            "qty_layer": self.qty_layer,
            "planned_time": self.planned_time,
            "incharge": self.incharge,
            "assigned": self.assigned,
            "completion_time": iso(self.completion_time),
            "inspection_details": self.inspection_details,
            "inspection_result": self.inspection_result,
            "resubmission_count": self.resubmission_count,
            "resubmission_date": self.resubmission_date,
            "rfi_submission_date": iso(self.rfi_submission_date),
        }


@dataclass(frozen=True)
class DailyWorkSummary:
    date: date
    incharge: int
    total: int = 0
    resubmissions: int = 0
    embankment: int = 0
    structure: int = 0
    pavement: int = 0
    completed: int = 0
    rfi_submissions: int = 0

    @property
    def pending(self) -> int:
        return self.total - self.completed

    @property
    def completion_percentage(self) -> float:
        return round(self.completed / self.total * 100, 1) if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": iso(self.date),
            "incharge": self.incharge,
            "totalDailyWorks": self.total,
            "resubmissions": self.resubmissions,
            "embankment": self.embankment,
            "structure": self.structure,
            "pavement": self.pavement,
            "completed": self.completed,
            "pending": self.pending,
            "rfiSubmissions": self.rfi_submissions,
            "completionPercentage": self.completion_percentage,
        }


@dataclass(frozen=True)
class DailyWorkFilters:
    """Listing filters. ``incharges`` wins over ``jurisdictions`` when both are set."""

    search: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    incharges: tuple[int, ...] = field(default_factory=tuple)
    jurisdictions: tuple[int, ...] = field(default_factory=tuple)
    # non-admin visibility: only works the user is incharge of or assigned to
    visible_to: Optional[int] = None
