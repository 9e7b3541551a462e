"""Device identification from request data.

Identifiers are tried from most to least stable: FCM token, device GUID,
device UUID, MAC address and finally the bare user agent.
"""
from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Optional

from ..core.enums import DeviceType
from .model import RequestInfo

_BROWSERS = (
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/([\d.]+)")),
    ("Opera", re.compile(r"(?:OPR|Opera)/([\d.]+)")),
    ("Samsung Browser", re.compile(r"SamsungBrowser/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/([\d.]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
    ("IE", re.compile(r"(?:MSIE |Trident/.*rv:)([\d.]+)")),
)

_PLATFORMS = (
    ("Windows", re.compile(r"Windows")),
    ("iOS", re.compile(r"iPhone|iPad|iPod")),
    ("Android", re.compile(r"Android")),
    ("Chrome OS", re.compile(r"CrOS")),
    ("OS X", re.compile(r"Macintosh|Mac OS X")),
    ("Linux", re.compile(r"Linux")),
)

_TABLET = re.compile(r"iPad|Tablet|Kindle|Silk|PlayBook")
_MOBILE = re.compile(r"Mobile|iPhone|iPod|Android|BlackBerry|Opera Mini|IEMobile")

FINGERPRINT_HEADERS = {
    "screen_resolution": "Screen-Resolution",
    "timezone": "Timezone",
    "language": "Accept-Language",
    "plugins": "Plugins",
}


@dataclass(frozen=True)
class UserAgent:
    browser: str
    browser_version: Optional[str]
    platform: str
    device_type: DeviceType

    @property
    def device_name(self) -> str:
        if self.device_type == DeviceType.MOBILE:
            return f"{self.browser} on {self.platform} Mobile"
        if self.device_type == DeviceType.TABLET:
            return f"{self.browser} on {self.platform} Tablet"
        return f"{self.browser} on {self.platform}"


def parse_user_agent(user_agent: Optional[str]) -> UserAgent:
    ua = user_agent or ""

    browser, version = "Unknown", None
    for name, pattern in _BROWSERS:
        m = pattern.search(ua)
        if m:
            browser, version = name, m.group(1)
            break

    platform = "Unknown"
    for name, pattern in _PLATFORMS:
        if pattern.search(ua):
            platform = name
            break

    if _TABLET.search(ua) or ("Android" in ua and "Mobile" not in ua):
        device_type = DeviceType.TABLET
    elif _MOBILE.search(ua):
        device_type = DeviceType.MOBILE
    else:
        device_type = DeviceType.DESKTOP

    return UserAgent(browser=browser, browser_version=version, platform=platform, device_type=device_type)


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def device_id_for(info: RequestInfo) -> str:
    for kind, value in (
        ("fcm", info.fcm_token),
        ("guid", info.device_guid),
        ("uuid", info.device_uuid),
        ("mac", info.device_mac),
    ):
        if value:
            return _sha256(f"{kind}:{value}")
    return _sha256(f"fallback:{info.user_agent or 'unknown'}")


def compatible_device_id_for(info: RequestInfo, user_id: int) -> str:
    """Looser id scoped to the user; survives user-agent changes of the same device."""
    if info.fcm_token:
        core: dict = {"fcm_token": info.fcm_token, "user_id": user_id}
    elif info.device_guid:
        core = {"device_guid": info.device_guid, "user_id": user_id}
    else:
        ua = parse_user_agent(info.user_agent)
        core = {
            "browser": ua.browser,
            "platform": ua.platform,
            "device_type": ua.device_type.value,
            "user_id": user_id,
        }
    return _sha256(json.dumps(core, sort_keys=True))


def request_info_from(req) -> RequestInfo:
    """Build RequestInfo from a Flask/werkzeug request."""
    data = req.get_json(silent=True)
    if not isinstance(data, dict):
        data = req.form

    def pick(header: Optional[str], name: str, *, cookie_first: bool = False) -> Optional[str]:
        sources = [
            lambda: req.headers.get(header) if header else None,
            lambda: data.get(name),
            lambda: req.cookies.get(name),
        ]
        if cookie_first:
            sources.insert(0, sources.pop())
        for source in sources:
            value = source()
            if value:
                return str(value)
        return None

    return RequestInfo(
        user_agent=req.headers.get("User-Agent", ""),
        ip_address=req.remote_addr,
        fcm_token=pick("X-FCM-Token", "fcm_token"),
        device_guid=pick("X-Device-GUID", "device_guid", cookie_first=True),
        device_uuid=pick("X-Device-UUID", "device_uuid"),
        device_model=pick("X-Device-Model", "device_model"),
        device_serial=pick("X-Device-Serial", "device_serial"),
        device_mac=pick("X-Device-Mac", "device_mac"),
        fingerprint={key: req.headers.get(header) for key, header in FINGERPRINT_HEADERS.items()},
    )
