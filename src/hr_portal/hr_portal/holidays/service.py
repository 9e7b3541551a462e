from __future__ import annotations

import logging
from datetime import date
from typing import Any, Sequence

from ..common.validators import FieldErrors, to_bool
from ..core.enums import HolidayType, values
from ..core.exceptions import NotFoundError
from .model import Holiday
from .repository import HolidayRepository

logger = logging.getLogger(__name__)

# the holiday form posts camelCase dates
FIELD_ALIASES = {"fromDate": "from_date", "toDate": "to_date", "holidayType": "type"}


class HolidayService:
    def __init__(self, holidays: HolidayRepository):
        self._holidays = holidays

    def list(self) -> Sequence[Holiday]:
        return self._holidays.list_all()

    def _clean(self, data: dict[str, Any]) -> dict[str, Any]:
        data = {FIELD_ALIASES.get(k, k): v for k, v in data.items()}
        errors = FieldErrors()

        title = errors.required(data, "title", "The holiday title is required.")
        if title is not None:
            title = errors.optional_str(data, "title", max_len=255)
        from_date = errors.date(data, "from_date")
        to_date = errors.date(data, "to_date", required=False) or from_date
        if from_date and to_date and to_date < from_date:
            errors.add("to_date", "The to date must be a date after or equal to from date.")
        holiday_type = errors.choice(data, "type", values(HolidayType), required=False) or HolidayType.PUBLIC.value

        errors.raise_if_any()
        return {
            "title": title,
            "description": errors.optional_str(data, "description"),
            "from_date": from_date,
            "to_date": to_date,
            "type": holiday_type,
            "is_recurring": to_bool(data.get("is_recurring", False)),
            "is_active": to_bool(data.get("is_active", True)),
        }

    def save(self, data: dict[str, Any]) -> tuple[Holiday, bool]:
        """Create, or update when ``id`` is present. Returns (holiday, created)."""
        errors = FieldErrors()
        holiday_id = errors.integer(data, "id", required=False, min_value=1)
        errors.raise_if_any()
        values_ = self._clean(data)

        if holiday_id is None:
            holiday_id = self._holidays.create(values_)
            logger.info("Holiday %s created: %s", holiday_id, values_["title"])
            holiday = self._holidays.get_by_id(holiday_id)
            if holiday is None:
                raise NotFoundError("Holiday not found.")
            return holiday, True

        if not self._holidays.get_by_id(holiday_id):
            raise NotFoundError("Holiday not found.")
        holiday = self._holidays.update(holiday_id, values_)
        if holiday is None:
            raise NotFoundError("Holiday not found.")
        return holiday, False

    def delete(self, holiday_id: int) -> None:
        if not self._holidays.delete_by_id(holiday_id):
            raise NotFoundError("Holiday not found.")
        logger.info("Holiday %s deleted", holiday_id)

    def holidays_on(self, day: date) -> list[Holiday]:
        return [h for h in self._holidays.list_overlapping(day, day) if h.covers(day)]

    def is_holiday(self, day: date) -> bool:
        return bool(self.holidays_on(day))

