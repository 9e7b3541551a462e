from __future__ import annotations

import csv
import io
from typing import Any, Callable, Iterable, Optional, Sequence

import pandas as pd

from ..core.exceptions import ValidationError
from .model import DailyWork

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# column key -> (header, value getter); getters receive the work and a user-name lookup
EXPORT_COLUMNS: dict[str, tuple[str, Callable[[DailyWork, Callable[[Optional[int]], str]], Any]]] = {
    "date": ("Date", lambda w, _: w.date.isoformat() if w.date else ""),
    "number": ("RFI Number", lambda w, _: w.number),
    "type": ("Type", lambda w, _: w.type),
    "description": ("Description", lambda w, _: w.description),
    "location": ("Location", lambda w, _: w.location),
    "side": ("Side", lambda w, _: w.side or "N/A"),
    "qty_layer": ("Qty/Layer", lambda w, _: w.qty_layer or "N/A"),
    "planned_time": ("Planned Time", lambda w, _: w.planned_time or "N/A"),
    "status": ("Status", lambda w, _: (w.status or "").capitalize()),
    "incharge": ("In Charge", lambda w, name: name(w.incharge)),
    "assigned": ("Assigned To", lambda w, name: name(w.assigned)),
    "completion_time": (
        "Completion Time",
        lambda w, _: w.completion_time.strftime("%Y-%m-%d %H:%M") if w.completion_time else "N/A",
    ),
    "rfi_submission_date": (
        "RFI Submission Date",
        lambda w, _: w.rfi_submission_date.isoformat() if w.rfi_submission_date else "N/A",
    ),
    "resubmission_count": ("Resubmission Count", lambda w, _: w.resubmission_count or 0),
}

DEFAULT_EXPORT_COLUMNS = (
    "date", "number", "type", "description", "location", "status",
    "incharge", "assigned", "completion_time", "rfi_submission_date",
)

TEMPLATE_HEADER = ["Date", "RFI Number", "Work Type", "Description", "Location/Chainage", "Road Side", "Layer/Quantity", "Time"]
TEMPLATE_SAMPLE_ROWS = [
    ["2025-11-26", "S2025-0527-10207", "Structure", "Retaining wall module: RE wall Block Installation Check",
     "K38+060-K38+110", "TR-R/TR-L/Both", "", "2:30 PM"],
    ["2025-11-26", "E2025-1126-23676", "Embankment", "Roadway Excavation in Suitable Soil Before Level Check",
     "K24+395-K24+418", "SR-L", "1.4m1", "5:00 PM"],
    ["2025-11-26", "E2025-1126-23677", "Embankment", "Embankment Sand Filling Level Check & Compaction Test",
     "K0+440-K0+450", "SR-R", "17th", "10:00 AM"],
]


def export_rows(
    works: Iterable[DailyWork],
    columns: Optional[Sequence[str]],
    user_name: Callable[[Optional[int]], str],
) -> tuple[list[str], list[dict[str, Any]]]:
    """Project works onto the selected columns. Unknown column keys are rejected."""
    columns = list(columns or DEFAULT_EXPORT_COLUMNS)
    unknown = [c for c in columns if c not in EXPORT_COLUMNS]
    if unknown:
        raise ValidationError.for_field("columns", f"Unknown export columns: {', '.join(unknown)}.")

    headers = [EXPORT_COLUMNS[c][0] for c in columns]
    rows = [{EXPORT_COLUMNS[c][0]: EXPORT_COLUMNS[c][1](w, user_name) for c in columns} for w in works]
    return headers, rows


def to_csv_bytes(headers: Sequence[str], rows: Iterable[dict[str, Any]]) -> bytes:
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=list(headers))
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return out.getvalue().encode("utf-8-sig")


def to_xlsx_bytes(headers: Sequence[str], rows: Sequence[dict[str, Any]], *, sheet_name: str = "Daily Works") -> bytes:
    df = pd.DataFrame(list(rows), columns=list(headers))
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()


def template_xlsx() -> bytes:
    df = pd.DataFrame(TEMPLATE_SAMPLE_ROWS, columns=TEMPLATE_HEADER)
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Sheet1")
    return output.getvalue()
