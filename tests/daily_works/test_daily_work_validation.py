from __future__ import annotations

from datetime import date, datetime

import pytest

from src.hr_portal.hr_portal.core.exceptions import ValidationError
from src.hr_portal.hr_portal.daily_works.validation import LOCATION_MESSAGE, clean_daily_work

VALID = {
    "date": "2026-10-18",
    "number": "S2026-1018-001",
    "planned_time": "10:00 AM",
    "status": "new",
    "type": "Structure",
    "description": "RE wall block installation check",
    "location": "K10+200-K10+260",
    "side": "SR-R",
}


def _errors(data):
    with pytest.raises(ValidationError) as exc:
        clean_daily_work(data)
    return exc.value.errors


def test_valid_rfi_is_cleaned():
    values = clean_daily_work({**VALID, "number": "  S2026-1018-001 ", "inspection_details": " "})

    assert values["date"] == date(2026, 10, 18)
    assert values["number"] == "S2026-1018-001"
    assert values["inspection_details"] is None
    assert values["completion_time"] is None
    assert values["qty_layer"] is None


def test_required_fields_use_rfi_wording():
    errors = _errors({"status": "new"})

    assert errors["date"] == ["RFI Date is required."]
    assert errors["number"] == ["RFI Number is required."]
    assert errors["planned_time"] == ["RFI Time is required."]
    assert {"type", "description", "location", "side"} <= set(errors)


def test_location_must_be_in_range():
    assert _errors({**VALID, "location": "K49+100"}) == {"location": [LOCATION_MESSAGE]}
    assert _errors({**VALID, "location": "Bridge 4"}) == {"location": [LOCATION_MESSAGE]}


def test_embankment_needs_a_layer():
    assert _errors({**VALID, "type": "Embankment"}) == {
        "qty_layer": ["Layer No. is required when the type is Embankment."]
    }
    assert clean_daily_work({**VALID, "type": "Embankment", "qty_layer": "3rd"})["qty_layer"] == "3rd"


def test_completed_needs_result_and_completion_time():
    errors = _errors({**VALID, "status": "completed"})
    assert errors == {
        "inspection_result": ["Inspection result is required for completed work."],
        "completion_time": ["Completion time is required when status is completed."],
    }

    values = clean_daily_work(
        {**VALID, "status": "completed", "inspection_result": "pass", "completion_time": "2026-10-18T15:30"}
    )
    assert values["completion_time"] == datetime(2026, 10, 18, 15, 30)


def test_inspection_details_limit():
    errors = _errors({**VALID, "inspection_details": "x" * 1001})
    assert errors == {"inspection_details": ["Inspection details cannot exceed 1000 characters."]}


def test_enum_fields_reject_unknown_values():
    errors = _errors({**VALID, "status": "done", "type": "Bridge", "side": "Middle", "inspection_result": "ok"})
    assert set(errors) == {"status", "type", "side", "inspection_result"}
