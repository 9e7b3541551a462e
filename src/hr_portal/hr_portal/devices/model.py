from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import iso


@dataclass(frozen=True)
class Device:
    """A browser/app installation a user has logged in from."""

    id: int
    user_id: int
    device_id: str
    compatible_device_id: Optional[str]
    device_name: str
    browser_name: str
    browser_version: Optional[str]
    platform: str
    device_type: str
    ip_address: Optional[str]
    user_agent: Optional[str]
    session_id: Optional[str]
    last_seen_at: Optional[datetime]
    is_active: bool = True
    is_trusted: bool = False
    device_fingerprint: Optional[dict] = None
    fcm_token: Optional[str] = None
    device_guid: Optional[str] = None
    device_uuid: Optional[str] = None
    device_model: Optional[str] = None
    device_serial: Optional[str] = None
    device_mac: Optional[str] = None
    created_at: Optional[datetime] = None

    def core_fingerprint(self) -> tuple[str, str, str]:
        return (self.browser_name, self.platform, self.device_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "device_id": self.device_id,
            "device_name": self.device_name,
            "browser_name": self.browser_name,
            "browser_version": self.browser_version,
            "platform": self.platform,
            "device_type": self.device_type,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "last_seen_at": iso(self.last_seen_at),
            "is_active": self.is_active,
            "is_trusted": self.is_trusted,
            "device_model": self.device_model,
            "created_at": iso(self.created_at),
        }


@dataclass(frozen=True)
class RequestInfo:
    """Everything about the incoming request the trust model looks at."""

    user_agent: str = ""
    ip_address: Optional[str] = None
    fcm_token: Optional[str] = None
    device_guid: Optional[str] = None
    device_uuid: Optional[str] = None
    device_model: Optional[str] = None
    device_serial: Optional[str] = None
    device_mac: Optional[str] = None
    fingerprint: dict = field(default_factory=dict)


@dataclass(frozen=True)
class LoginCheck:
    allowed: bool
    device_id: str
    message: str
    device: Optional[Device] = None
    blocked_by: Optional[Device] = None
