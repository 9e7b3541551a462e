from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_set_clause, db_cursor, fetchall, fetchone
from .model import COLUMNS, User
from .repository import UserRepository

_SELECT = f"SELECT {', '.join(COLUMNS)} FROM users"
WRITABLE = set(COLUMNS) - {"id"}


def _row_to_user(row: dict) -> User:
    data = {k: row.get(k) for k in COLUMNS}
    data["id"] = int(row["id"])
    data["role"] = Role(row["role"])
    data["active"] = bool(row.get("active", True))
    data["single_device_login"] = bool(row.get("single_device_login", False))
    return User(**data)


def _check_column(column: str) -> None:
    if column not in COLUMNS:
        raise ValueError(f"Unknown column: {column}")


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (user_id,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_login(self, login: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE user_name=%s OR email=%s LIMIT 1", (login, login))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def exists_with(self, column: str, value: Any, *, exclude_id: Optional[int] = None) -> bool:
        _check_column(column)
        sql = f"SELECT 1 FROM users WHERE {column}=%s"
        params: list[Any] = [value]
        if exclude_id is not None:
            sql += " AND id<>%s"
            params.append(exclude_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", params)
            return fetchone(cur) is not None

    def search(
        self,
        *,
        search: Optional[str] = None,
        role: Optional[Role] = None,
        department_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 30,
    ) -> tuple[Sequence[User], int]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            where.append("(name LIKE %s OR email LIKE %s OR employee_id LIKE %s OR phone LIKE %s)")
            params.extend([f"%{search}%"] * 4)
        if role:
            where.append("role=%s")
            params.append(role.value)
        if department_id:
            where.append("department_id=%s")
            params.append(department_id)
        where_sql = f" WHERE {' AND '.join(where)}" if where else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users{where_sql}", params)
            total = int((fetchone(cur) or {}).get("n", 0))
            cur.execute(f"{_SELECT}{where_sql} ORDER BY name ASC, id ASC LIMIT %s OFFSET %s", (*params, limit, offset))
            return [_row_to_user(r) for r in fetchall(cur)], total

    def list_active_employees(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE role=%s AND active=1 ORDER BY name", (Role.EMPLOYEE.value,))
            return [_row_to_user(r) for r in fetchall(cur)]

    def create(self, values: dict[str, Any]) -> int:
        values = {k: v for k, v in values.items() if k in WRITABLE}
        cols = list(values.keys())
        params = [v.value if isinstance(v, Role) else v for v in values.values()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO users({', '.join(cols)}, created_at, updated_at) "
                f"VALUES({', '.join(['%s'] * len(cols))}, NOW(), NOW())",
                params,
            )
            return int(cur.lastrowid)

    def update(self, user_id: int, changes: dict[str, Any]) -> Optional[User]:
        if changes:
            changes = {k: (v.value if isinstance(v, Role) else v) for k, v in changes.items()}
            set_sql, params = build_set_clause(changes, WRITABLE)
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE users SET {set_sql}, updated_at=NOW() WHERE id=%s", (*params, user_id))
        return self.get_by_id(user_id)

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE id=%s", (user_id,))
            return cur.rowcount > 0

    def count_by(self, column: str, value: Any) -> int:
        _check_column(column)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users WHERE {column}=%s", (value,))
            return int((fetchone(cur) or {}).get("n", 0))
