from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..common.validators import FieldErrors, blank
from ..core.constants import MAX_INSPECTION_DETAILS
from ..core.enums import DailyWorkStatus, DailyWorkType, InspectionResult, RoadSide, values
from .chainage import is_valid_location

LOCATION_MESSAGE = "The location must start with 'K' and be in the range K0 to K48."


def _date(errors: FieldErrors, data: dict[str, Any]):
    if blank(data.get("date")):
        errors.add("date", "RFI Date is required.")
        return None
    return errors.date(data, "date")


def _completion_time(errors: FieldErrors, data: dict[str, Any]) -> Optional[datetime]:
    value = data.get("completion_time")
    if blank(value):
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        errors.add("completion_time", "The completion time is not a valid date.")
        return None


def clean_daily_work(data: dict[str, Any]) -> dict[str, Any]:
    """Validate a submitted RFI and return the column values to store.

    Raises ValidationError (422) with every failing field at once.
    """
    errors = FieldErrors()

    out: dict[str, Any] = {
        "date": _date(errors, data),
        "number": errors.required(data, "number", "RFI Number is required."),
        "planned_time": errors.required(data, "planned_time", "RFI Time is required."),
        "status": errors.choice(data, "status", values(DailyWorkStatus)),
        "type": errors.choice(data, "type", values(DailyWorkType)),
        "description": errors.required(data, "description"),
        "side": errors.choice(data, "side", values(RoadSide)),
        "qty_layer": errors.optional_str(data, "qty_layer", max_len=255),
        "inspection_result": errors.choice(data, "inspection_result", values(InspectionResult), required=False),
        "completion_time": _completion_time(errors, data),
    }

    location = errors.required(data, "location")
    if location is not None and not is_valid_location(location):
        errors.add("location", LOCATION_MESSAGE)
    out["location"] = location

    details = data.get("inspection_details")
    if not blank(details):
        details = str(details).strip()
        if len(details) > MAX_INSPECTION_DETAILS:
            errors.add("inspection_details", f"Inspection details cannot exceed {MAX_INSPECTION_DETAILS} characters.")
    out["inspection_details"] = details if not blank(details) else None

    if out["status"] == DailyWorkStatus.COMPLETED.value:
        if out["inspection_result"] is None and "inspection_result" not in errors:
            errors.add("inspection_result", "Inspection result is required for completed work.")
        if out["completion_time"] is None and "completion_time" not in errors:
            errors.add("completion_time", "Completion time is required when status is completed.")

    if out["type"] == DailyWorkType.EMBANKMENT.value and out["qty_layer"] is None:
        errors.add("qty_layer", "Layer No. is required when the type is Embankment.")

    errors.raise_if_any()
    return out
