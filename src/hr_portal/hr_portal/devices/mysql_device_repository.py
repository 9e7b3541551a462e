from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_set_clause, db_cursor, fetchall, fetchone, load_json
from .model import Device
from .repository import DeviceRepository

_COLUMNS = (
    "id, user_id, device_id, compatible_device_id, device_name, browser_name, browser_version, "
    "platform, device_type, ip_address, user_agent, session_id, last_seen_at, is_active, is_trusted, "
    "device_fingerprint, fcm_token, device_guid, device_uuid, device_model, device_serial, device_mac, created_at"
)

WRITABLE = {
    "device_id",
    "compatible_device_id",
    "device_name",
    "browser_name",
    "browser_version",
    "platform",
    "device_type",
    "ip_address",
    "user_agent",
    "session_id",
    "last_seen_at",
    "is_active",
    "is_trusted",
    "device_fingerprint",
    "fcm_token",
    "device_guid",
    "device_uuid",
    "device_model",
    "device_serial",
    "device_mac",
}


def _row_to_device(row: dict) -> Device:
    return Device(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        device_id=row["device_id"],
        compatible_device_id=row.get("compatible_device_id"),
        device_name=row.get("device_name") or "",
        browser_name=row.get("browser_name") or "",
        browser_version=row.get("browser_version"),
        platform=row.get("platform") or "",
        device_type=row.get("device_type") or "desktop",
        ip_address=row.get("ip_address"),
        user_agent=row.get("user_agent"),
        session_id=row.get("session_id"),
        last_seen_at=row.get("last_seen_at"),
        is_active=bool(row.get("is_active", True)),
        is_trusted=bool(row.get("is_trusted", False)),
        device_fingerprint=load_json(row.get("device_fingerprint")),
        fcm_token=row.get("fcm_token"),
        device_guid=row.get("device_guid"),
        device_uuid=row.get("device_uuid"),
        device_model=row.get("device_model"),
        device_serial=row.get("device_serial"),
        device_mac=row.get("device_mac"),
        created_at=row.get("created_at"),
    )


class MySQLDeviceRepository(DeviceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, device_pk: int) -> Optional[Device]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM user_devices WHERE id=%s", (device_pk,))
            row = fetchone(cur)
            return _row_to_device(row) if row else None

    def _find_one(self, user_id: int, column: str, value: str, active_only: bool) -> Optional[Device]:
        sql = f"SELECT {_COLUMNS} FROM user_devices WHERE user_id=%s AND {column}=%s"
        if active_only:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY id LIMIT 1", (user_id, value))
            row = fetchone(cur)
            return _row_to_device(row) if row else None

    def find_by_device_id(self, user_id: int, device_id: str, *, active_only: bool = False) -> Optional[Device]:
        return self._find_one(user_id, "device_id", device_id, active_only)

    def find_by_compatible_id(self, user_id: int, compatible_id: str, *, active_only: bool = False) -> Optional[Device]:
        return self._find_one(user_id, "compatible_device_id", compatible_id, active_only)

    def find_by_session(self, session_id: str) -> Optional[Device]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM user_devices WHERE session_id=%s LIMIT 1", (session_id,))
            row = fetchone(cur)
            return _row_to_device(row) if row else None

    def list_for_user(self, user_id: int) -> Sequence[Device]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM user_devices WHERE user_id=%s ORDER BY last_seen_at DESC, id DESC",
                (user_id,),
            )
            return [_row_to_device(r) for r in fetchall(cur)]

    def update(self, device_pk: int, changes: dict[str, Any]) -> Optional[Device]:
        if changes:
            set_sql, params = build_set_clause(changes, WRITABLE)
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE user_devices SET {set_sql}, updated_at=NOW() WHERE id=%s", (*params, device_pk))
        return self.get_by_id(device_pk)

    def register(self, user_id: int, values: dict[str, Any], *, replace_existing: bool) -> Device:
        values = {k: v for k, v in values.items() if k in WRITABLE}
        cols = ["user_id", *values.keys()]
        params = [user_id] + [json.dumps(v) if isinstance(v, (dict, list)) else v for v in values.values()]
        updates = ", ".join(f"{c}=VALUES({c})" for c in values if c != "device_id")

        with db_cursor(self._conn_factory) as (_, cur):
            if replace_existing:
                cur.execute("DELETE FROM user_devices WHERE user_id=%s", (user_id,))
            cur.execute(
                f"""
                INSERT INTO user_devices({", ".join(cols)}, created_at, updated_at)
                VALUES({", ".join(["%s"] * len(cols))}, NOW(), NOW())
                ON DUPLICATE KEY UPDATE {updates}, updated_at=NOW()
                """,
                params,
            )
            cur.execute(
                f"SELECT {_COLUMNS} FROM user_devices WHERE user_id=%s AND device_id=%s",
                (user_id, values["device_id"]),
            )
            return _row_to_device(fetchone(cur))

    def deactivate_session(self, session_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE user_devices SET is_active=0, session_id=NULL, updated_at=NOW() WHERE session_id=%s AND is_active=1",
                (session_id,),
            )
            return int(cur.rowcount)

    def delete_for_user(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_devices WHERE user_id=%s", (user_id,))
            return int(cur.rowcount)

    def delete_inactive_before(self, cutoff: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_devices WHERE is_active=0 AND updated_at < %s", (cutoff,))
            return int(cur.rowcount)

    def counts(self, *, online_since: datetime) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(is_active=1), 0) AS active,
                       COALESCE(SUM(is_active=1 AND last_seen_at > %s), 0) AS online
                FROM user_devices
                """,
                (online_since,),
            )
            row = fetchone(cur) or {}
            return {k: int(row.get(k) or 0) for k in ("total", "active", "online")}
