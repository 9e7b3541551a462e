"""Single-device-login trust model.

A user with ``single_device_login`` enabled may only hold a session on the
one device registered for them. Registration on login replaces every other
device; the per-request check logs out sessions whose device was removed,
force-logged-out, or no longer matches.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import DEVICE_ONLINE_MINUTES, INACTIVE_DEVICE_RETENTION_DAYS
from ..core.exceptions import DeviceBlockedError, NotFoundError
from ..users.model import User
from ..users.repository import UserRepository
from .fingerprint import compatible_device_id_for, device_id_for, parse_user_agent
from .model import Device, LoginCheck, RequestInfo
from .repository import DeviceRepository

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = (
    "Login blocked: Account is locked to a specific device. "
    "Only the registered device can access this account."
)
FORCED_LOGOUT_MESSAGE = "Your session on this device has ended. Please log in again."


def _hardware(info: RequestInfo, device: Device) -> dict[str, Any]:
    return {
        "device_model": info.device_model or device.device_model,
        "device_serial": info.device_serial or device.device_serial,
        "device_mac": info.device_mac or device.device_mac,
    }


def blocked_device_info(device: Optional[Device]) -> Optional[dict[str, Any]]:
    if device is None:
        return None
    return {
        "device_name": device.device_name,
        "browser": device.browser_name,
        "browser_version": device.browser_version,
        "platform": device.platform,
        "device_type": device.device_type,
        "ip_address": device.ip_address,
        "last_seen_at": device.last_seen_at.isoformat() if device.last_seen_at else None,
    }


class DeviceService:
    def __init__(
        self,
        devices: DeviceRepository,
        users: UserRepository,
        *,
        online_minutes: int = DEVICE_ONLINE_MINUTES,
        retention_days: int = INACTIVE_DEVICE_RETENTION_DAYS,
    ):
        self._devices = devices
        self._users = users
        self._online_minutes = online_minutes
        self._retention_days = retention_days

    def describe(self, info: RequestInfo, user_id: int) -> dict[str, Any]:
        """Column values for the device the request comes from."""
        ua = parse_user_agent(info.user_agent)
        return {
            "device_id": device_id_for(info),
            "compatible_device_id": compatible_device_id_for(info, user_id),
            "device_name": ua.device_name,
            "browser_name": ua.browser,
            "browser_version": ua.browser_version,
            "platform": ua.platform,
            "device_type": ua.device_type.value,
            "ip_address": info.ip_address,
            "user_agent": info.user_agent,
            "device_fingerprint": dict(info.fingerprint),
            "fcm_token": info.fcm_token,
            "device_guid": info.device_guid,
            "device_uuid": info.device_uuid,
            "device_model": info.device_model,
            "device_serial": info.device_serial,
            "device_mac": info.device_mac,
        }

    def can_login(self, user: User, info: RequestInfo) -> LoginCheck:
        device_id = device_id_for(info)

        if not user.single_device_login:
            return LoginCheck(allowed=True, device_id=device_id, message="Login allowed")

        now = now_local()

        existing = self._devices.find_by_device_id(user.id, device_id)
        if existing:
            if not existing.is_active:
                existing = self._devices.update(existing.id, {"is_active": True, "last_seen_at": now}) or existing
            return LoginCheck(allowed=True, device_id=device_id, message="Login from registered device", device=existing)

        compatible = self._devices.find_by_compatible_id(user.id, compatible_device_id_for(info, user.id))
        if compatible:
            updated = self._devices.update(
                compatible.id,
                {"device_id": device_id, "is_active": True, "last_seen_at": now, **_hardware(info, compatible)},
            )
            return LoginCheck(
                allowed=True,
                device_id=device_id,
                message="Login from compatible device (updated fingerprint)",
                device=updated or compatible,
            )

        registered = list(self._devices.list_for_user(user.id))
        if not registered:
            return LoginCheck(
                allowed=True,
                device_id=device_id,
                message="Login allowed: No registered devices found - new device registration",
            )

        current = self.describe(info, user.id)
        core = (current["browser_name"], current["platform"], current["device_type"])
        for device in registered:
            if device.core_fingerprint() == core:
                updated = self._devices.update(
                    device.id,
                    {
                        "device_id": device_id,
                        "compatible_device_id": current["compatible_device_id"],
                        "is_active": True,
                        "ip_address": info.ip_address,
                        "user_agent": info.user_agent,
                        "last_seen_at": now,
                        **_hardware(info, device),
                    },
                )
                return LoginCheck(
                    allowed=True,
                    device_id=device_id,
                    message="Login from registered device (updated network fingerprint)",
                    device=updated or device,
                )

        blocker = next((d for d in registered if d.is_active), registered[0])
        logger.warning(
            "Blocked login for user %s from %s (%s); registered device %s",
            user.id,
            current["device_name"],
            info.ip_address,
            blocker.device_name,
        )
        return LoginCheck(allowed=False, device_id=device_id, message=BLOCKED_MESSAGE, blocked_by=blocker)

    def ensure_can_login(self, user: User, info: RequestInfo) -> LoginCheck:
        check = self.can_login(user, info)
        if not check.allowed:
            raise DeviceBlockedError(check.message, blocked_device_info(check.blocked_by))
        return check

    def register(self, user: User, info: RequestInfo, session_id: str) -> Device:
        values = self.describe(info, user.id)
        values.update(session_id=session_id, last_seen_at=now_local(), is_active=True)
        return self._devices.register(user.id, values, replace_existing=user.single_device_login)

    def touch(self, user: User, info: RequestInfo, session_id: Optional[str] = None) -> Optional[Device]:
        device_id = device_id_for(info)
        device = self._devices.find_by_device_id(user.id, device_id, active_only=True)
        changes: dict[str, Any] = {"last_seen_at": now_local()}

        if device is None:
            device = self._devices.find_by_compatible_id(user.id, compatible_device_id_for(info, user.id), active_only=True)
            if device is None:
                return None
            changes["device_id"] = device_id

        if session_id:
            changes["session_id"] = session_id
        return self._devices.update(device.id, changes)

    def ensure_session_active(self, user_id: int, session_id: str, *, missing_ok: bool = False) -> Optional[Device]:
        """Raise DeviceBlockedError when the session's device was logged out.

        With ``missing_ok`` a session that no device row points at is let
        through; regular users may share one device row across re-logins.
        """
        device = self._devices.find_by_session(session_id)
        if device is None and missing_ok:
            return None
        if device is None or device.user_id != user_id or not device.is_active:
            logger.warning("Rejected session for user %s: device no longer active", user_id)
            raise DeviceBlockedError(FORCED_LOGOUT_MESSAGE)
        return device

    def verify_session(self, user: User, info: RequestInfo, session_id: str) -> Optional[Device]:
        """Per-request check for single-device users; raises DeviceBlockedError."""
        self.ensure_session_active(user.id, session_id)
        self.ensure_can_login(user, info)
        return self.touch(user, info, session_id)

    def deactivate_session(self, session_id: str) -> None:
        self._devices.deactivate_session(session_id)

    def force_logout(self, device_pk: int) -> Device:
        device = self._devices.get_by_id(device_pk)
        if not device:
            raise NotFoundError("Device not found.")
        logger.warning("Force logout of device %s (%s) for user %s", device.id, device.device_name, device.user_id)
        return self._devices.update(device.id, {"is_active": False}) or device

    def list_devices(self, user_id: int) -> Sequence[Device]:
        return self._devices.list_for_user(user_id)

    def _require_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        return user

    def toggle_single_device_login(self, user_id: int, enabled: bool, reason: Optional[str] = None) -> User:
        self._require_user(user_id)
        logger.warning(
            "Single device login %s for user %s%s",
            "enabled" if enabled else "disabled",
            user_id,
            f" ({reason})" if reason else "",
        )
        return self._users.update(user_id, {"single_device_login": enabled}) or self._require_user(user_id)

    def reset_devices(self, user_id: int, reason: Optional[str] = None) -> int:
        self._require_user(user_id)
        removed = self._devices.delete_for_user(user_id)
        self._users.update(user_id, {"device_reset_at": now_local(), "device_reset_reason": reason})
        logger.warning("Reset %s device(s) for user %s", removed, user_id)
        return removed

    def statistics(self) -> dict[str, int]:
        counts = self._devices.counts(online_since=now_local() - timedelta(minutes=self._online_minutes))
        return {
            "total_devices": counts["total"],
            "active_devices": counts["active"],
            "online_devices": counts["online"],
            "inactive_devices": counts["total"] - counts["active"],
            "users_with_single_device_enabled": self._users.count_by("single_device_login", True),
        }

    def cleanup_inactive(self, days: Optional[int] = None) -> int:
        cutoff = now_local() - timedelta(days=self._retention_days if days is None else days)
        removed = self._devices.delete_inactive_before(cutoff)
        logger.info("Removed %s inactive device(s) idle since %s", removed, cutoff.date())
        return removed
