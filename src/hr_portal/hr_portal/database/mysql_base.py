from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Open a connection + cursor; commit on success, roll back on error.

    Everything executed inside one ``with`` block is a single transaction.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def build_set_clause(changes: Dict[str, Any], allowed: Iterable[str]) -> Tuple[str, List[Any]]:
    """Turn a changeset into ``col1=%s, col2=%s`` restricted to known columns."""
    allowed = set(allowed)
    unknown = [k for k in changes if k not in allowed]
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(sorted(unknown))}")

    cols = list(changes.keys())
    params = [json.dumps(changes[c]) if isinstance(changes[c], (dict, list)) else changes[c] for c in cols]
    return ", ".join(f"{c}=%s" for c in cols), params


def in_clause(column: str, values: Sequence[Any]) -> Tuple[str, List[Any]]:
    placeholders = ",".join(["%s"] * len(values))
    return f"{column} IN ({placeholders})", list(values)


def load_json(value: Any) -> Any:
    if value is None or isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return None

