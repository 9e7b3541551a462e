from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Iterable, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError.for_field(field_name, f"{field_name} is required.")
    return str(value).strip()


def blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class FieldErrors:
    """Collects per-field messages and raises them as one ValidationError.

    Mirrors the 422 payload the forms render inline:
    ``{"message": "...", "errors": {"field": ["msg", ...]}}``.
    """

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def __contains__(self, field: str) -> bool:
        return field in self._errors

    def __bool__(self) -> bool:
        return bool(self._errors)

    def required(self, data: dict, field: str, message: Optional[str] = None) -> Any:
        value = data.get(field)
        if blank(value):
            self.add(field, message or f"The {field} field is required.")
            return None
        return value.strip() if isinstance(value, str) else value

    def optional_str(self, data: dict, field: str, *, max_len: Optional[int] = None) -> Optional[str]:
        value = data.get(field)
        if blank(value):
            return None
        value = str(value).strip()
        if max_len is not None and len(value) > max_len:
            self.add(field, f"The {field} may not be greater than {max_len} characters.")
        return value

    def choice(self, data: dict, field: str, allowed: Iterable[str], *, required: bool = True, message: Optional[str] = None) -> Optional[str]:
        allowed = list(allowed)
        value = data.get(field)
        if blank(value):
            if required:
                self.add(field, f"The {field} field is required.")
            return None
        if value not in allowed:
            self.add(field, message or f"The {field} must be one of: {', '.join(allowed)}.")
            return None
        return value

    def date(self, data: dict, field: str, *, required: bool = True) -> Optional[date]:
        value = data.get(field)
        if blank(value):
            if required:
                self.add(field, f"The {field} field is required.")
            return None
        if isinstance(value, date):
            return value
        try:
            return parse_iso_date(str(value))
        except ValueError:
            self.add(field, f"The {field} is not a valid date.")
            return None

    def time(self, data: dict, field: str, *, required: bool = False) -> Optional[time]:
        value = data.get(field)
        if blank(value):
            if required:
                self.add(field, f"The {field} field is required.")
            return None
        try:
            return datetime.strptime(str(value).strip(), "%H:%M").time()
        except ValueError:
            self.add(field, f"The {field} does not match the format H:i.")
            return None

    def integer(self, data: dict, field: str, *, required: bool = True, min_value: Optional[int] = None) -> Optional[int]:
        value = data.get(field)
        if blank(value):
            if required:
                self.add(field, f"The {field} field is required.")
            return None
        try:
            number = int(value)
        except (TypeError, ValueError):
            self.add(field, f"The {field} must be an integer.")
            return None
        if min_value is not None and number < min_value:
            self.add(field, f"The {field} must be at least {min_value}.")
            return None
        return number

    def number_between(self, data: dict, field: str, low: float, high: float) -> Optional[float]:
        value = data.get(field)
        if blank(value):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            self.add(field, f"The {field} must be a number.")
            return None
        if not low <= number <= high:
            self.add(field, f"The {field} must be between {low:g} and {high:g}.")
            return None
        return number

    def raise_if_any(self, message: str = "The given data was invalid.") -> None:
        if self._errors:
            raise ValidationError(message, self._errors)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (optionally with a time part) into a date."""
    return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
