from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_set_clause, db_cursor, fetchall, fetchone
from .model import Holiday
from .repository import HolidayRepository

_SELECT = "SELECT id, title, description, from_date, to_date, type, is_recurring, is_active FROM holidays"
WRITABLE = {"title", "description", "from_date", "to_date", "type", "is_recurring", "is_active"}


def _row_to_holiday(row: dict) -> Holiday:
    return Holiday(
        id=int(row["id"]),
        title=row["title"],
        description=row.get("description"),
        from_date=row["from_date"],
        to_date=row["to_date"],
        type=row.get("type") or "public",
        is_recurring=bool(row.get("is_recurring", False)),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (holiday_id,))
            row = fetchone(cur)
            return _row_to_holiday(row) if row else None

    def list_all(self) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} ORDER BY from_date ASC, id ASC")
            return [_row_to_holiday(r) for r in fetchall(cur)]

    def list_overlapping(self, start: date, end: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE is_active=1 AND (is_recurring=1 OR (from_date<=%s AND to_date>=%s)) ORDER BY from_date",
                (end, start),
            )
            return [_row_to_holiday(r) for r in fetchall(cur)]

    def create(self, values: dict[str, Any]) -> int:
        values = {k: v for k, v in values.items() if k in WRITABLE}
        cols = list(values.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO holidays({', '.join(cols)}) VALUES({', '.join(['%s'] * len(cols))})",
                list(values.values()),
            )
            return int(cur.lastrowid)

    def update(self, holiday_id: int, changes: dict[str, Any]) -> Optional[Holiday]:
        if changes:
            set_sql, params = build_set_clause(changes, WRITABLE)
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE holidays SET {set_sql} WHERE id=%s", (*params, holiday_id))
        return self.get_by_id(holiday_id)

    def delete_by_id(self, holiday_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM holidays WHERE id=%s", (holiday_id,))
            return cur.rowcount > 0
