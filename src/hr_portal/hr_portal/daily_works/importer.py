"""Bulk RFI import from XLSX/CSV sheets.

Each sheet holds one day of RFIs, one per row, columns in this order::

    date, number, type, description, location, side, qty_layer, planned_time

An optional header row (first cell ``Date``) is skipped. Every sheet is
validated before anything is written, so a bad sheet aborts the whole import.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Callable, Optional

import pandas as pd
from werkzeug.datastructures import FileStorage

from ..common.datetime_utils import now_local
from ..common.validators import FieldErrors, blank
from ..core.enums import DailyWorkStatus, DailyWorkType, values
from ..core.exceptions import ValidationError
from .chainage import find_jurisdiction, is_valid_location
from .repository import DailyWorkRepository, JurisdictionRepository
from .service import DailyWorkService
from .validation import LOCATION_MESSAGE

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ("xlsx", "csv")
COLUMNS = ("date", "number", "type", "description", "location", "side", "qty_layer", "planned_time")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")

Row = list[Optional[str]]


def ordinal(number: int) -> str:
    if number % 100 not in (11, 12, 13):
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10)
        if suffix:
            return f"{number}{suffix}"
    return f"{number}th"


def resubmission_label(count: int, when: datetime) -> str:
    """``2nd Resubmission on 18th October 2026``."""
    return f"{ordinal(count)} Resubmission on {ordinal(when.day)} {when.strftime('%B %Y')}"


def _cell(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def _normalize_row(raw: tuple) -> Row:
    row = [_cell(v) for v in raw][: len(COLUMNS)]
    row += [None] * (len(COLUMNS) - len(row))
    # spreadsheet date cells come back as "YYYY-MM-DD 00:00:00"
    if row[0] and _DATE_RE.match(row[0]):
        row[0] = row[0][:10]
    return row


def read_sheets(file: Optional[FileStorage]) -> list[list[Row]]:
    """Load every sheet of the uploaded workbook (a CSV counts as one sheet)."""
    if file is None or not file.filename:
        raise ValidationError.for_field("file", "The file field is required.")
    ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError.for_field("file", "The file must be a file of type: xlsx, csv.")

    try:
        if ext == "csv":
            frames = [pd.read_csv(file.stream, header=None, dtype=str, skip_blank_lines=True)]
        else:
            frames = list(pd.read_excel(file.stream, sheet_name=None, header=None, dtype=str).values())
    except (ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.warning("Unreadable import file %s: %s", file.filename, e)
        raise ValidationError.for_field("file", "The file could not be read.") from e

    sheets: list[list[Row]] = []
    for df in frames:
        rows = [_normalize_row(r) for r in df.itertuples(index=False, name=None)]
        rows = [r for r in rows if any(r)]
        if rows and (rows[0][0] or "").lower() == "date":
            rows = rows[1:]
        sheets.append(rows)
    return sheets


def _is_date(text: str) -> bool:
    try:
        datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def validate_sheet(rows: list[Row], sheet_no: int, errors: FieldErrors) -> None:
    reference = rows[0][0]
    if not reference:
        errors.add("date", f"Sheet {sheet_no} is missing a reference date.")
        return

    types = values(DailyWorkType)
    for i, row in enumerate(rows):
        label = f"Sheet {sheet_no} - Daily Work number {row[1] or 'unknown'}'s"
        key = f"{sheet_no}.{i}"

        work_date = row[0]
        if not work_date:
            errors.add(f"{key}.0", f"{label} date {work_date or 'unknown'} must have a valid date.")
        elif not _DATE_RE.fullmatch(work_date) or not _is_date(work_date):
            errors.add(f"{key}.0", f"{label} date {work_date} must be in the format Y-m-d.")
        elif work_date != reference:
            errors.add(f"{key}.0", f"{label} date {work_date} must match the reference date {reference}.")

        if not row[1]:
            errors.add(f"{key}.1", f"{label} RFI number must have a value.")
        if not row[2]:
            errors.add(f"{key}.2", f"{label} type must have a value.")
        elif row[2] not in types:
            errors.add(f"{key}.2", f"{label} type must be one of: {', '.join(types)}.")
        if not row[3]:
            errors.add(f"{key}.3", f"{label} description must have a value.")
        if not row[4]:
            errors.add(f"{key}.4", f"{label} location must have a value.")
        elif not is_valid_location(row[4]):
            errors.add(f"{key}.4", f"{label} location: {LOCATION_MESSAGE}")


class DailyWorkImporter:
    def __init__(
        self,
        works: DailyWorkRepository,
        jurisdictions: JurisdictionRepository,
        service: DailyWorkService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._works = works
        self._jurisdictions = jurisdictions
        self._service = service
        self._clock = clock

    def import_file(self, file: Optional[FileStorage]) -> list[dict[str, Any]]:
        sheets = [rows for rows in read_sheets(file) if rows]
        if not sheets:
            raise ValidationError.for_field("file", "The file does not contain any daily works.")

        errors = FieldErrors()
        for no, rows in enumerate(sheets, start=1):
            validate_sheet(rows, no, errors)
        errors.raise_if_any()

        jurisdictions = list(self._jurisdictions.list_all())
        results = [self._process_sheet(rows, no, jurisdictions) for no, rows in enumerate(sheets, start=1)]
        logger.info("Imported %s sheet(s), %s row(s)", len(results), sum(r["processed_count"] for r in results))
        return results

    def _process_sheet(self, rows: list[Row], sheet_no: int, jurisdictions) -> dict[str, Any]:
        reference = rows[0][0]
        summaries: dict[int, dict[str, int]] = {}
        touched: set[tuple[date, int]] = set()

        for row in rows:
            record = dict(zip(COLUMNS, row))
            jurisdiction = find_jurisdiction(record["location"], jurisdictions)
            if not jurisdiction:
                logger.warning("No jurisdiction found for location: %s", record["location"])
                continue

            incharge = jurisdiction.incharge
            summary = summaries.setdefault(
                incharge,
                {"totalDailyWorks": 0, "resubmissions": 0, "embankment": 0, "structure": 0, "pavement": 0},
            )
            summary["totalDailyWorks"] += 1
            summary[record["type"].lower()] += 1

            record["date"] = datetime.strptime(record["date"], "%Y-%m-%d").date()
            existing = self._works.get_by_number(record["number"])
            if existing:
                summary["resubmissions"] += 1
                touched.add((existing.date, existing.incharge))
                self._resubmit(existing, record, incharge)
            else:
                record.update(status=DailyWorkStatus.NEW.value, incharge=incharge, assigned=None)
                self._works.create(record)
            touched.add((record["date"], incharge))

        for work_date, incharge in touched:
            if incharge is not None:
                self._service.refresh_summary(work_date, incharge)

        return {
            "sheet": sheet_no,
            "date": reference,
            "summaries": summaries,
            "processed_count": len(rows),
        }

    def _resubmit(self, existing, record: dict[str, Any], incharge: int) -> None:
        count = (existing.resubmission_count or 0) + 1
        if count == 1 and not blank(existing.resubmission_date):
            label = existing.resubmission_date
        else:
            label = resubmission_label(count, self._clock())

        completed = existing.status == DailyWorkStatus.COMPLETED.value
        changes = {
            **record,
            "date": existing.date if completed else record["date"],
            "status": DailyWorkStatus.COMPLETED.value if completed else DailyWorkStatus.NEW.value,
            "incharge": incharge,
            "assigned": None,
            "resubmission_count": count,
            "resubmission_date": label,
        }
        if not completed:
            changes.update(completion_time=None, inspection_result=None, inspection_details=None)
        self._works.update(existing.id, changes)
        logger.info("Daily work %s resubmitted (%s)", existing.number, label)
