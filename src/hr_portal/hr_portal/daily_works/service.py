from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.pagination import Page
from ..common.validators import FieldErrors, blank
from ..core.constants import DEFAULT_PER_PAGE, MAX_INSPECTION_DETAILS, UNPAGINATED_LIMIT, UNPAGINATED_THRESHOLD
from ..core.enums import DailyWorkStatus, InspectionResult, values
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .chainage import find_jurisdiction
from .model import DailyWork, DailyWorkFilters, DailyWorkSummary, Jurisdiction
from .repository import DailyWorkRepository, JurisdictionRepository, SummaryRepository
from .validation import clean_daily_work

logger = logging.getLogger(__name__)

DUPLICATE_NUMBER = "A daily work with the same RFI number already exists."
NO_JURISDICTION = "No jurisdiction found for the specified location."


def _id_list(value: Any) -> tuple[int, ...]:
    """Accept ``[1, 2]``, ``"1,2"`` or a single id; ignore anything non-numeric."""
    if isinstance(value, (list, tuple)):
        items = value
    elif blank(value):
        return ()
    else:
        items = str(value).split(",")
    return tuple(int(v) for v in (str(i).strip() for i in items) if v.isdigit())


def build_filters(args: dict[str, Any], *, visible_to: Optional[int] = None) -> DailyWorkFilters:
    """Listing filters from query-string style arguments. ``all`` means no filter."""
    errors = FieldErrors()
    start = errors.date(args, "startDate", required=False)
    end = errors.date(args, "endDate", required=False)
    errors.raise_if_any()

    def _opt(key: str) -> Optional[str]:
        value = args.get(key)
        return None if blank(value) or value == "all" else str(value).strip()

    return DailyWorkFilters(
        search=_opt("search"),
        status=_opt("status"),
        type=_opt("type"),
        start_date=start,
        end_date=end,
        incharges=_id_list(args.get("incharge")),
        jurisdictions=_id_list(args.get("jurisdiction")),
        visible_to=visible_to,
    )


class DailyWorkService:
    """RFI (daily work) bookkeeping: CRUD, listing and per-incharge summaries."""

    def __init__(
        self,
        works: DailyWorkRepository,
        jurisdictions: JurisdictionRepository,
        summaries: SummaryRepository,
        users: UserRepository,
    ):
        self._works = works
        self._jurisdictions = jurisdictions
        self._summaries = summaries
        self._users = users

    def get(self, work_id: int) -> DailyWork:
        work = self._works.get_by_id(work_id)
        if not work:
            raise NotFoundError("Daily work not found.")
        return work

    def match_jurisdiction(self, location: str) -> Optional[Jurisdiction]:
        return find_jurisdiction(location, self._jurisdictions.list_all())

    # ------------------------------------------------------------------ listing

    def _resolve(self, filters: DailyWorkFilters) -> Optional[DailyWorkFilters]:
        """Turn jurisdiction ids into incharge ids; None means nothing can match."""
        if filters.incharges or not filters.jurisdictions:
            return replace(filters, jurisdictions=())
        incharges = tuple(self._jurisdictions.incharges_for(filters.jurisdictions))
        if not incharges:
            return None
        return replace(filters, incharges=incharges, jurisdictions=())

    def paginate(self, filters: DailyWorkFilters, *, page: Any = 1, per_page: Any = None) -> Page[DailyWork]:
        started = time.perf_counter()
        try:
            page_i = max(1, int(page or 1))
        except (TypeError, ValueError):
            page_i = 1
        try:
            per_page_i = max(1, int(per_page or DEFAULT_PER_PAGE))
        except (TypeError, ValueError):
            per_page_i = DEFAULT_PER_PAGE
        if filters.search:
            page_i = 1

        resolved = self._resolve(filters)
        if resolved is None:
            return Page(items=[], total=0, page=1, per_page=per_page_i)

        if per_page_i >= UNPAGINATED_THRESHOLD:
            rows, _ = self._works.search(resolved, offset=0, limit=UNPAGINATED_LIMIT)
            result = Page(items=list(rows), total=len(rows), page=1, per_page=len(rows) or 1)
        else:
            rows, total = self._works.search(resolved, offset=(page_i - 1) * per_page_i, limit=per_page_i)
            result = Page(items=list(rows), total=total, page=page_i, per_page=per_page_i)

        logger.debug(
            "dailyWorks.paginate page=%s per_page=%s rows=%s took %.1f ms",
            result.page, result.per_page, len(result.items), (time.perf_counter() - started) * 1000,
        )
        return result

    def all(self, filters: DailyWorkFilters) -> list[DailyWork]:
        resolved = self._resolve(filters)
        if resolved is None:
            return []
        rows, _ = self._works.search(resolved, offset=0, limit=UNPAGINATED_LIMIT)
        return list(rows)

    # ------------------------------------------------------------------ writes

    def create(self, data: dict[str, Any]) -> DailyWork:
        values_ = clean_daily_work({**data, "status": DailyWorkStatus.NEW.value})
        if self._works.get_by_number(values_["number"]):
            raise ValidationError.for_field("number", DUPLICATE_NUMBER)

        jurisdiction = self.match_jurisdiction(values_["location"])
        if not jurisdiction:
            raise ValidationError.for_field("location", NO_JURISDICTION)

        values_["incharge"] = jurisdiction.incharge
        work_id = self._works.create(values_)
        logger.info("Daily work %s (%s) created for incharge %s", work_id, values_["number"], jurisdiction.incharge)

        self.refresh_summary(values_["date"], jurisdiction.incharge)
        return self.get(work_id)

    def update(self, work_id: int, data: dict[str, Any]) -> DailyWork:
        work = self.get(work_id)
        values_ = clean_daily_work(data)

        other = self._works.get_by_number(values_["number"])
        if other and other.id != work_id:
            raise ValidationError.for_field("number", DUPLICATE_NUMBER)

        if values_["location"] != work.location:
            jurisdiction = self.match_jurisdiction(values_["location"])
            if not jurisdiction:
                raise ValidationError.for_field("location", NO_JURISDICTION)
            values_["incharge"] = jurisdiction.incharge

        updated = self._works.update(work_id, values_) or work
        self._refresh_pair(work, updated)
        return updated

    def delete(self, work_id: int) -> str:
        work = self.get(work_id)
        self._works.delete_by_id(work_id)
        logger.info("Daily work %s (%s) deleted", work_id, work.number)
        if work.incharge is not None:
            self.refresh_summary(work.date, work.incharge)
        return f"Daily work '{work.number}' deleted successfully"

    def update_status(self, work_id: int, data: dict[str, Any]) -> DailyWork:
        work = self.get(work_id)
        errors = FieldErrors()
        status = errors.choice(data, "status", values(DailyWorkStatus))
        result = errors.choice(data, "inspection_result", values(InspectionResult), required=False)
        errors.raise_if_any()

        changes: dict[str, Any] = {"status": status}
        if result is not None:
            changes["inspection_result"] = result
        if status == DailyWorkStatus.COMPLETED.value:
            changes["completion_time"] = work.completion_time or now_local()
        elif status == DailyWorkStatus.NEW.value:
            changes.update(completion_time=None, inspection_result=None)

        updated = self._works.update(work_id, changes) or work
        self._refresh_pair(work, updated)
        return updated

    def update_assigned(self, work_id: int, assigned: Any) -> DailyWork:
        work = self.get(work_id)
        errors = FieldErrors()
        user_id = errors.integer({"assigned": assigned}, "assigned", required=False, min_value=1)
        errors.raise_if_any()
        if user_id is not None and not self._users.get_by_id(user_id):
            raise ValidationError.for_field("assigned", "The selected user does not exist.")
        return self._works.update(work_id, {"assigned": user_id}) or work

    def update_submission_date(self, work_id: int, data: dict[str, Any]) -> DailyWork:
        work = self.get(work_id)
        errors = FieldErrors()
        submitted = errors.date(data, "rfi_submission_date")
        errors.raise_if_any()
        updated = self._works.update(work_id, {"rfi_submission_date": submitted}) or work
        self._refresh_pair(work, updated)
        return updated

    def update_inspection_details(self, work_id: int, details: Any) -> DailyWork:
        work = self.get(work_id)
        details = None if blank(details) else str(details).strip()
        if details and len(details) > MAX_INSPECTION_DETAILS:
            raise ValidationError.for_field(
                "inspection_details", f"Inspection details cannot exceed {MAX_INSPECTION_DETAILS} characters."
            )
        return self._works.update(work_id, {"inspection_details": details}) or work

    # ------------------------------------------------------------------ summaries

    def refresh_summary(self, work_date: date, incharge: int) -> Optional[DailyWorkSummary]:
        summary = self._works.summary_counts(work_date, incharge)
        if summary.total == 0:
            self._summaries.delete(work_date, incharge)
            return None
        self._summaries.upsert(summary)
        return summary

    def _refresh_pair(self, before: DailyWork, after: DailyWork) -> None:
        keys = {(before.date, before.incharge), (after.date, after.incharge)}
        for work_date, incharge in keys:
            if incharge is not None:
                self.refresh_summary(work_date, incharge)

    def summaries(self, *, incharge: Optional[int] = None) -> Sequence[DailyWorkSummary]:
        return self._summaries.list_all(incharge=incharge)

    def summary_totals(self, summaries: Sequence[DailyWorkSummary]) -> dict[str, Any]:
        total = sum(s.total for s in summaries)
        completed = sum(s.completed for s in summaries)
        return {
            "totalDailyWorks": total,
            "completed": completed,
            "pending": total - completed,
            "resubmissions": sum(s.resubmissions for s in summaries),
            "rfiSubmissions": sum(s.rfi_submissions for s in summaries),
            "completionPercentage": round(completed / total * 100, 1) if total else 0.0,
        }
