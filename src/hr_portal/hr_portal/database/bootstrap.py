"""Schema/seed helpers used by ``create_app`` (AUTO_INIT_DB / AUTO_SEED_DB) and ``scripts/``."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_USERS = (
    # name, user_name, email, password, role, department
    ("Admin Demo", "admin", "admin@example.com", "admin12345", "admin", "Administration"),
    ("HR Demo", "hr", "hr@example.com", "hr12345678", "hr", "Human Resources"),
    ("Employee Demo", "employee", "employee@example.com", "employee123", "employee", "Engineering"),
)

DEMO_JURISDICTIONS = (
    ("Section A", "K0+000", "K23+999"),
    ("Section B", "K24+000", "K48+000"),
)


def _strip_create_db_and_use(sql: str) -> str:
    # the target database comes from DB_CONFIG, not from the file
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on ``;`` outside quotes. ``--`` comment lines are dropped."""
    sql = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in sql:
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _execute_script(conn_factory: DatabaseConnection, statements: Iterable[str]) -> int:
    conn = conn_factory.connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_dict(db_config)
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))
    count = _execute_script(DatabaseConnection(DBConfig.from_dict(db_config)), iter_sql_statements(sql))
    logger.info("Applied %s (%s statements)", Path(schema_path).name, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(seed_path).read_text(encoding="utf-8"))
    count = _execute_script(DatabaseConnection(DBConfig.from_dict(db_config)), iter_sql_statements(sql))
    logger.info("Applied %s (%s statements)", Path(seed_path).name, count)


def ensure_demo_users(db_config: dict) -> None:
    """Create or refresh the demo accounts; seed demo jurisdictions into an empty table."""
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)

        def department_id(name: str) -> int | None:
            cur.execute("SELECT id FROM departments WHERE name=%s", (name,))
            row = cur.fetchone()
            return int(row["id"]) if row else None

        for name, user_name, email, password, role, department in DEMO_USERS:
            password_hash = generate_password_hash(password)
            dept_id = department_id(department)
            cur.execute("SELECT id FROM users WHERE user_name=%s", (user_name,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, email=%s, password_hash=%s, role=%s, department_id=%s, active=1, updated_at=NOW()
                    WHERE user_name=%s
                    """,
                    (name, email, password_hash, role, dept_id, user_name),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (name, user_name, email, password_hash, role, department_id, active, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, 1, NOW(), NOW())
                    """,
                    (name, user_name, email, password_hash, role, dept_id),
                )

        cur.execute("SELECT COUNT(*) AS n FROM jurisdictions")
        if not int(cur.fetchone()["n"]):
            cur.execute("SELECT id FROM users WHERE user_name=%s", ("employee",))
            incharge = int(cur.fetchone()["id"])
            for location, start, end in DEMO_JURISDICTIONS:
                cur.execute(
                    "INSERT INTO jurisdictions (location, start_chainage, end_chainage, incharge) VALUES (%s, %s, %s, %s)",
                    (location, start, end, incharge),
                )
        conn.commit()
    finally:
        conn.close()
    logger.info("Demo users ready: %s", ", ".join(u[1] for u in DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
