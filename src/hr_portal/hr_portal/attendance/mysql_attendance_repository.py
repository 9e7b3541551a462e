from __future__ import annotations

import json
from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import AttendanceRecord, TimesheetRow
from .repository import AttendanceRepository

_COLUMNS = "a.id, a.user_id, a.date, a.punchin, a.punchout, a.punchin_location, a.punchout_location, a.status, a.notes"
WRITABLE = {"user_id", "date", "punchin", "punchout", "punchin_location", "punchout_location", "status", "notes"}


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        date=r["date"],
        punchin=r.get("punchin"),
        punchout=r.get("punchout"),
        punchin_location=load_json(r.get("punchin_location")),
        punchout_location=load_json(r.get("punchout_location")),
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances a WHERE a.user_id=%s AND a.date=%s",
                (user_id, work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendances a WHERE a.id=%s", (record_id,))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(self, values: dict[str, Any]) -> int:
        values = {k: v for k, v in values.items() if k in WRITABLE}
        cols = list(values.keys())
        params = [
            json.dumps(v) if isinstance(v, dict) else (v.value if isinstance(v, AttendanceStatus) else v)
            for v in values.values()
        ]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO attendances({', '.join(cols)}) VALUES({', '.join(['%s'] * len(cols))})",
                params,
            )
            return int(cur.lastrowid)

    def timesheet(
        self,
        work_date: date,
        *,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 30,
    ) -> tuple[Sequence[TimesheetRow], int]:
        where = "a.date=%s"
        params: list[Any] = [work_date]
        if search:
            where += " AND (u.name LIKE %s OR u.employee_id LIKE %s)"
            params.extend([f"%{search}%"] * 2)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendances a JOIN users u ON u.id=a.user_id WHERE {where}", params)
            total = int((fetchone(cur) or {}).get("n", 0))
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.name AS user_name, u.employee_id, u.department_id
                FROM attendances a
                JOIN users u ON u.id = a.user_id
                WHERE {where}
                ORDER BY a.punchin ASC, a.id ASC
                LIMIT %s OFFSET %s
                """,
                (*params, limit, offset),
            )
            rows = [
                TimesheetRow(
                    record=_row_to_record(r),
                    user_name=r["user_name"],
                    employee_id=r.get("employee_id"),
                    department_id=r.get("department_id"),
                )
                for r in fetchall(cur)
            ]
            return rows, total

    def user_ids_on(self, work_date: date) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT user_id FROM attendances WHERE date=%s", (work_date,))
            return {int(r["user_id"]) for r in fetchall(cur)}
