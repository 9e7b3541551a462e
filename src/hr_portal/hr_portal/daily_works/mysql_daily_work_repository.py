from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_set_clause, db_cursor, fetchall, fetchone, in_clause
from .model import DailyWork, DailyWorkFilters, DailyWorkSummary, Jurisdiction
from .repository import DailyWorkRepository, JurisdictionRepository, SummaryRepository

_COLUMNS = (
    "id", "date", "number", "status", "type", "description", "location", "side", "qty_layer",
    "planned_time", "incharge", "assigned", "completion_time", "inspection_details",
    "inspection_result", "resubmission_count", "resubmission_date", "rfi_submission_date",
)
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM daily_works"
WRITABLE = set(_COLUMNS) - {"id"}


def _row_to_work(row: dict) -> DailyWork:
    values = {c: row.get(c) for c in _COLUMNS}
    values["id"] = int(row["id"])
    values["resubmission_count"] = int(row.get("resubmission_count") or 0)
    if values["planned_time"] is not None:
        values["planned_time"] = str(values["planned_time"])
    return DailyWork(**values)


def _where(filters: DailyWorkFilters) -> tuple[str, list[Any]]:
    where: list[str] = []
    params: list[Any] = []

    if filters.visible_to is not None:
        where.append("(incharge=%s OR assigned=%s)")
        params.extend([filters.visible_to, filters.visible_to])
    if filters.search:
        where.append("(number LIKE %s OR location LIKE %s OR description LIKE %s)")
        params.extend([f"%{filters.search}%"] * 3)
    if filters.status:
        where.append("status=%s")
        params.append(filters.status)
    if filters.type:
        where.append("type=%s")
        params.append(filters.type)

    if filters.start_date and filters.end_date and filters.start_date == filters.end_date:
        where.append("date=%s")
        params.append(filters.start_date)
    elif filters.start_date and filters.end_date:
        where.append("date BETWEEN %s AND %s")
        params.extend([filters.start_date, filters.end_date])
    elif filters.start_date:
        where.append("date>=%s")
        params.append(filters.start_date)

    if filters.incharges:
        sql, in_params = in_clause("incharge", filters.incharges)
        where.append(sql)
        params.extend(in_params)

    return (f" WHERE {' AND '.join(where)}" if where else ""), params


class MySQLDailyWorkRepository(DailyWorkRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, work_id: int) -> Optional[DailyWork]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (work_id,))
            row = fetchone(cur)
            return _row_to_work(row) if row else None

    def get_by_number(self, number: str) -> Optional[DailyWork]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE number=%s", (number,))
            row = fetchone(cur)
            return _row_to_work(row) if row else None

    def search(self, filters: DailyWorkFilters, *, offset: int, limit: int) -> tuple[Sequence[DailyWork], int]:
        where_sql, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM daily_works{where_sql}", params)
            total = int((fetchone(cur) or {}).get("n", 0))
            cur.execute(
                f"{_SELECT}{where_sql} ORDER BY date DESC, id DESC LIMIT %s OFFSET %s",
                (*params, limit, offset),
            )
            return [_row_to_work(r) for r in fetchall(cur)], total

    def create(self, values: dict[str, Any]) -> int:
        values = {k: v for k, v in values.items() if k in WRITABLE}
        cols = list(values.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO daily_works({', '.join(cols)}, created_at, updated_at) "
                f"VALUES({', '.join(['%s'] * len(cols))}, NOW(), NOW())",
                list(values.values()),
            )
            return int(cur.lastrowid)

    def update(self, work_id: int, changes: dict[str, Any]) -> Optional[DailyWork]:
        if changes:
            set_sql, params = build_set_clause(changes, WRITABLE)
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE daily_works SET {set_sql}, updated_at=NOW() WHERE id=%s", (*params, work_id))
        return self.get_by_id(work_id)

    def delete_by_id(self, work_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM daily_works WHERE id=%s", (work_id,))
            return cur.rowcount > 0

    def summary_counts(self, work_date: date, incharge: int) -> DailyWorkSummary:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(resubmission_count > 0), 0) AS resubmissions,
                       COALESCE(SUM(type='Embankment'), 0) AS embankment,
                       COALESCE(SUM(type='Structure'), 0) AS structure,
                       COALESCE(SUM(type='Pavement'), 0) AS pavement,
                       COALESCE(SUM(status='completed'), 0) AS completed,
                       COALESCE(SUM(rfi_submission_date IS NOT NULL), 0) AS rfi_submissions
                FROM daily_works WHERE date=%s AND incharge=%s
                """,
                (work_date, incharge),
            )
            row = fetchone(cur) or {}
            return DailyWorkSummary(
                date=work_date,
                incharge=incharge,
                **{k: int(row.get(k) or 0) for k in (
                    "total", "resubmissions", "embankment", "structure", "pavement", "completed", "rfi_submissions",
                )},
            )


class MySQLJurisdictionRepository(JurisdictionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Jurisdiction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, location, start_chainage, end_chainage, incharge FROM jurisdictions ORDER BY id")
            return [
                Jurisdiction(
                    id=int(r["id"]),
                    location=r["location"],
                    start_chainage=r["start_chainage"],
                    end_chainage=r["end_chainage"],
                    incharge=int(r["incharge"]),
                )
                for r in fetchall(cur)
            ]

    def incharges_for(self, jurisdiction_ids: Sequence[int]) -> Sequence[int]:
        if not jurisdiction_ids:
            return []
        sql, params = in_clause("id", jurisdiction_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT DISTINCT incharge FROM jurisdictions WHERE {sql}", params)
            return [int(r["incharge"]) for r in fetchall(cur)]


class MySQLSummaryRepository(SummaryRepository):
    _FIELDS = ("total", "resubmissions", "embankment", "structure", "pavement", "completed", "rfi_submissions")

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, summary: DailyWorkSummary) -> None:
        counts = [getattr(summary, f) for f in self._FIELDS]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO daily_work_summaries(date, incharge, {', '.join(self._FIELDS)})
                VALUES(%s, %s, {', '.join(['%s'] * len(self._FIELDS))})
                ON DUPLICATE KEY UPDATE {', '.join(f'{f}=VALUES({f})' for f in self._FIELDS)}
                """,
                (summary.date, summary.incharge, *counts),
            )

    def delete(self, work_date: date, incharge: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM daily_work_summaries WHERE date=%s AND incharge=%s", (work_date, incharge))

    def list_all(self, *, incharge: Optional[int] = None) -> Sequence[DailyWorkSummary]:
        sql = f"SELECT date, incharge, {', '.join(self._FIELDS)} FROM daily_work_summaries"
        params: tuple = ()
        if incharge is not None:
            sql += " WHERE incharge=%s"
            params = (incharge,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{sql} ORDER BY date DESC, incharge", params)
            return [
                DailyWorkSummary(
                    date=r["date"],
                    incharge=int(r["incharge"]),
                    **{f: int(r.get(f) or 0) for f in self._FIELDS},
                )
                for r in fetchall(cur)
            ]
