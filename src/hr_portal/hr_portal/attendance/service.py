from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page, normalize_page
from ..common.validators import FieldErrors
from ..core.constants import DEFAULT_PRESENT_REASON, DEFAULT_PUNCH_IN, MAX_PER_PAGE
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ValidationError
from ..holidays.service import HolidayService
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord, TimesheetRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, users: UserRepository, holidays: HolidayService):
        self._attendance = attendance
        self._users = users
        self._holidays = holidays

    def mark_as_present(self, *, actor_id: int, data: dict[str, Any]) -> AttendanceRecord:
        """Create a present record on behalf of an employee who could not punch in."""
        errors = FieldErrors()
        user_id = errors.integer(data, "user_id", min_value=1)
        work_date = errors.date(data, "date")

        punch_data = dict(data)
        if not punch_data.get("punch_in_time"):
            punch_data["punch_in_time"] = DEFAULT_PUNCH_IN
        punch_in = errors.time(punch_data, "punch_in_time", required=True)
        punch_out = errors.time(punch_data, "punch_out_time")
        if punch_in and punch_out and punch_out <= punch_in:
            errors.add("punch_out_time", "The punch out time must be a time after punch in time.")

        reason = errors.optional_str(data, "reason", max_len=255) or DEFAULT_PRESENT_REASON
        location = errors.optional_str(data, "location", max_len=255)
        address = errors.optional_str(data, "address", max_len=500)
        lat = errors.number_between(data, "lat", -90, 90)
        lng = errors.number_between(data, "lng", -180, 180)
        errors.raise_if_any()

        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError.for_field("user_id", "The selected user id is invalid.")
        if user.role != Role.EMPLOYEE:
            raise ValidationError.for_field("user_id", "Attendance can only be marked for employees.")
        if self._attendance.get_for_user_and_date(user.id, work_date):
            raise ValidationError.for_field("date", "User already has attendance record for this date.")

        punchin_location = None
        if any(v is not None for v in (lat, lng, location, address)):
            punchin_location = {"lat": lat, "lng": lng, "address": address, "location": location}

        record_id = self._attendance.create(
            {
                "user_id": user.id,
                "date": work_date,
                "punchin": datetime.combine(work_date, punch_in),
                "punchout": datetime.combine(work_date, punch_out) if punch_out else None,
                "punchin_location": punchin_location,
                "punchout_location": punchin_location if punch_out else None,
                "status": AttendanceStatus.PRESENT,
                "notes": reason,
            }
        )
        logger.info("User %s marked present on %s by %s", user.id, work_date, actor_id)
        record = self._attendance.get_by_id(record_id)
        if record is None:
            raise ValidationError("Failed to mark attendance.")
        return record

    def timesheet(
        self,
        *,
        work_date: Optional[date] = None,
        page: Any = 1,
        per_page: Any = None,
        search: Optional[str] = None,
    ) -> Page[TimesheetRow]:
        work_date = work_date or now_local().date()
        page_i, per_page_i = normalize_page(page, per_page, max_per_page=MAX_PER_PAGE)
        search = (search or "").strip() or None
        if search:
            page_i = 1
        rows, total = self._attendance.timesheet(
            work_date,
            search=search,
            offset=(page_i - 1) * per_page_i,
            limit=per_page_i,
        )
        return Page(items=list(rows), total=total, page=page_i, per_page=per_page_i)

    def absent(self, work_date: Optional[date] = None) -> list[User]:
        work_date = work_date or now_local().date()
        if self._holidays.is_holiday(work_date):
            return []
        present = self._attendance.user_ids_on(work_date)
        return [u for u in self._users.list_active_employees() if u.id not in present]
