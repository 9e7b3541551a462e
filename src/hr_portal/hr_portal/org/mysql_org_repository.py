from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_set_clause, db_cursor, fetchall, fetchone
from .model import Department, Designation
from .repository import DepartmentRepository, DesignationRepository


def _row_to_department(row: dict) -> Department:
    return Department(
        id=int(row["id"]),
        name=row["name"],
        code=row.get("code"),
        parent_id=row.get("parent_id"),
        manager_id=row.get("manager_id"),
        description=row.get("description"),
        is_active=bool(row.get("is_active", True)),
    )


def _row_to_designation(row: dict) -> Designation:
    return Designation(
        id=int(row["id"]),
        title=row["title"],
        department_id=int(row["department_id"]),
        parent_id=row.get("parent_id"),
        hierarchy_level=int(row.get("hierarchy_level") or 1),
        is_active=bool(row.get("is_active", True)),
    )


class _MySQLHierarchyRepository:
    """Shared CRUD for the self-referencing org tables."""

    table: str = ""
    columns: tuple[str, ...] = ()
    to_model: Callable[[dict], Any]

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @property
    def _select(self) -> str:
        return f"SELECT id, {', '.join(self.columns)} FROM {self.table}"

    def get_by_id(self, pk: int):
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{self._select} WHERE id=%s", (pk,))
            row = fetchone(cur)
            return type(self).to_model(row) if row else None

    def exists_with(self, column: str, value: Any, *, exclude_id: Optional[int] = None) -> bool:
        if column not in self.columns:
            raise ValueError(f"Unknown column: {column}")
        sql = f"SELECT 1 FROM {self.table} WHERE {column}=%s"
        params: list[Any] = [value]
        if exclude_id is not None:
            sql += " AND id<>%s"
            params.append(exclude_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", params)
            return fetchone(cur) is not None

    def create(self, values: dict[str, Any]) -> int:
        values = {k: v for k, v in values.items() if k in self.columns}
        cols = list(values.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {self.table}({', '.join(cols)}) VALUES({', '.join(['%s'] * len(cols))})",
                list(values.values()),
            )
            return int(cur.lastrowid)

    def update(self, pk: int, changes: dict[str, Any]):
        if changes:
            set_sql, params = build_set_clause(changes, self.columns)
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE {self.table} SET {set_sql} WHERE id=%s", (*params, pk))
        return self.get_by_id(pk)

    def delete_by_id(self, pk: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {self.table} WHERE id=%s", (pk,))
            return cur.rowcount > 0

    def count_children(self, pk: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM {self.table} WHERE parent_id=%s", (pk,))
            return int((fetchone(cur) or {}).get("n", 0))


class MySQLDepartmentRepository(_MySQLHierarchyRepository, DepartmentRepository):
    table = "departments"
    columns = ("name", "code", "parent_id", "manager_id", "description", "is_active")
    to_model = staticmethod(_row_to_department)

    def list_all(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{self._select} ORDER BY name")
            return [_row_to_department(r) for r in fetchall(cur)]


class MySQLDesignationRepository(_MySQLHierarchyRepository, DesignationRepository):
    table = "designations"
    columns = ("title", "department_id", "parent_id", "hierarchy_level", "is_active")
    to_model = staticmethod(_row_to_designation)

    def list_all(self, *, department_id: Optional[int] = None) -> Sequence[Designation]:
        sql = self._select
        params: tuple = ()
        if department_id is not None:
            sql += " WHERE department_id=%s"
            params = (department_id,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY hierarchy_level, title", params)
            return [_row_to_designation(r) for r in fetchall(cur)]

    def count_for_department(self, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM designations WHERE department_id=%s", (department_id,))
            return int((fetchone(cur) or {}).get("n", 0))
