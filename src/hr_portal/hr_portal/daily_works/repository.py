from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol, Sequence

from .model import DailyWork, DailyWorkFilters, DailyWorkSummary, Jurisdiction


class DailyWorkRepository(Protocol):
    def get_by_id(self, work_id: int) -> Optional[DailyWork]:
        raise NotImplementedError

    def get_by_number(self, number: str) -> Optional[DailyWork]:
        raise NotImplementedError

    def search(self, filters: DailyWorkFilters, *, offset: int, limit: int) -> tuple[Sequence[DailyWork], int]:
        """Ordered by date desc. Returns (rows, total matching)."""
        raise NotImplementedError

    def create(self, values: dict[str, Any]) -> int:
        raise NotImplementedError

    def update(self, work_id: int, changes: dict[str, Any]) -> Optional[DailyWork]:
        raise NotImplementedError

    def delete_by_id(self, work_id: int) -> bool:
        raise NotImplementedError

    def summary_counts(self, work_date: date, incharge: int) -> DailyWorkSummary:
        """Aggregate the works of one (date, incharge); total is 0 when there are none."""
        raise NotImplementedError


class JurisdictionRepository(Protocol):
    def list_all(self) -> Sequence[Jurisdiction]:
        raise NotImplementedError

    def incharges_for(self, jurisdiction_ids: Sequence[int]) -> Sequence[int]:
        raise NotImplementedError


class SummaryRepository(Protocol):
    def upsert(self, summary: DailyWorkSummary) -> None:
        raise NotImplementedError

    def delete(self, work_date: date, incharge: int) -> None:
        raise NotImplementedError

    def list_all(self, *, incharge: Optional[int] = None) -> Sequence[DailyWorkSummary]:
        """Ordered by date desc."""
        raise NotImplementedError
