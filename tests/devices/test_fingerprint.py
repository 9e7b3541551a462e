from __future__ import annotations

from src.hr_portal.hr_portal.core.enums import DeviceType
from src.hr_portal.hr_portal.devices.fingerprint import (
    compatible_device_id_for,
    device_id_for,
    parse_user_agent,
)
from src.hr_portal.hr_portal.devices.model import RequestInfo

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
CHROME_ANDROID_TABLET = (
    "Mozilla/5.0 (Linux; Android 13; SM-X700) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.91"


def test_parse_desktop_chrome():
    ua = parse_user_agent(CHROME_WINDOWS)

    assert ua.browser == "Chrome"
    assert ua.browser_version == "120.0.0.0"
    assert ua.platform == "Windows"
    assert ua.device_type == DeviceType.DESKTOP
    assert ua.device_name == "Chrome on Windows"


def test_parse_mobile_and_tablet():
    phone = parse_user_agent(SAFARI_IPHONE)
    assert (phone.browser, phone.platform, phone.device_type) == ("Safari", "iOS", DeviceType.MOBILE)
    assert phone.device_name == "Safari on iOS Mobile"

    tablet = parse_user_agent(CHROME_ANDROID_TABLET)
    assert tablet.device_type == DeviceType.TABLET
    assert tablet.device_name == "Chrome on Android Tablet"


def test_edge_wins_over_chrome_token():
    assert parse_user_agent(EDGE_WINDOWS).browser == "Edge"


def test_unknown_user_agent():
    ua = parse_user_agent(None)
    assert ua.device_name == "Unknown on Unknown"


def test_device_id_prefers_stable_identifiers():
    by_fcm = RequestInfo(user_agent=CHROME_WINDOWS, fcm_token="tok", device_guid="g-1")
    by_guid = RequestInfo(user_agent=SAFARI_IPHONE, device_guid="g-1")
    fallback = RequestInfo(user_agent=CHROME_WINDOWS)

    assert device_id_for(by_fcm) == device_id_for(RequestInfo(fcm_token="tok"))
    assert device_id_for(by_guid) == device_id_for(RequestInfo(user_agent=CHROME_WINDOWS, device_guid="g-1"))
    assert device_id_for(fallback) != device_id_for(RequestInfo(user_agent=SAFARI_IPHONE))
    assert len(device_id_for(fallback)) == 64


def test_compatible_id_survives_browser_upgrade_and_is_per_user():
    old = RequestInfo(user_agent=CHROME_WINDOWS)
    new = RequestInfo(user_agent=CHROME_WINDOWS.replace("120.0.0.0", "121.0.0.0"))

    assert device_id_for(old) != device_id_for(new)
    assert compatible_device_id_for(old, 1) == compatible_device_id_for(new, 1)
    assert compatible_device_id_for(old, 1) != compatible_device_id_for(old, 2)
