from __future__ import annotations

from datetime import timedelta

import pytest

from src.hr_portal.hr_portal.core.exceptions import DeviceBlockedError, NotFoundError
from src.hr_portal.hr_portal.devices.model import RequestInfo
from src.hr_portal.hr_portal.devices.service import BLOCKED_MESSAGE, FORCED_LOGOUT_MESSAGE, DeviceService
from tests.fakes import CHROME_WINDOWS, FIREFOX_LINUX, InMemoryDevices, InMemoryUsers

CHROME_WINDOWS_NEXT = CHROME_WINDOWS.replace("120.0.0.0", "121.0.0.0")


@pytest.fixture
def repos():
    return InMemoryDevices(), InMemoryUsers()


@pytest.fixture
def service(repos, fixed_now):
    devices, users = repos
    return DeviceService(devices, users, online_minutes=5, retention_days=30)


def _locked_user(users: InMemoryUsers):
    return users.add(name="Alice", single_device_login=True)


def test_multi_device_user_is_never_blocked(service, repos):
    _, users = repos
    user = users.add(name="Bob")

    service.register(user, RequestInfo(user_agent=CHROME_WINDOWS), "s1")
    check = service.can_login(user, RequestInfo(user_agent=FIREFOX_LINUX))

    assert check.allowed is True
    assert check.message == "Login allowed"


def test_first_device_is_registered_then_others_are_blocked(service, repos):
    devices, users = repos
    user = _locked_user(users)
    chrome = RequestInfo(user_agent=CHROME_WINDOWS, ip_address="10.0.0.5")

    first = service.ensure_can_login(user, chrome)
    assert first.message.startswith("Login allowed: No registered devices found")
    device = service.register(user, chrome, "s1")
    assert device.device_name == "Chrome on Windows"
    assert device.session_id == "s1"

    with pytest.raises(DeviceBlockedError) as exc:
        service.ensure_can_login(user, RequestInfo(user_agent=FIREFOX_LINUX))
    assert exc.value.message == BLOCKED_MESSAGE
    assert exc.value.status_code == 401
    payload = exc.value.to_dict()
    assert payload["device_blocked"] is True
    assert payload["blocked_device_info"]["device_name"] == "Chrome on Windows"
    assert payload["blocked_device_info"]["ip_address"] == "10.0.0.5"


def test_same_device_again_is_allowed(service, repos):
    _, users = repos
    user = _locked_user(users)
    chrome = RequestInfo(user_agent=CHROME_WINDOWS)
    service.register(user, chrome, "s1")

    check = service.can_login(user, chrome)

    assert check.allowed
    assert check.message == "Login from registered device"


def test_browser_upgrade_is_matched_as_compatible_device(service, repos, fixed_now):
    devices, users = repos
    user = _locked_user(users)
    registered = service.register(user, RequestInfo(user_agent=CHROME_WINDOWS), "s1")

    upgraded = RequestInfo(user_agent=CHROME_WINDOWS_NEXT)
    check = service.can_login(user, upgraded)

    assert check.allowed
    assert "compatible device" in check.message
    assert check.device.id == registered.id
    assert check.device.device_id != registered.device_id
    assert check.device.last_seen_at == fixed_now


def test_register_replaces_other_devices_for_locked_user(service, repos):
    devices, users = repos
    user = _locked_user(users)
    devices.add(user.id, "old-device", browser_name="Firefox", platform="Linux")

    service.register(user, RequestInfo(user_agent=CHROME_WINDOWS), "s1")

    assert [d.device_name for d in devices.list_for_user(user.id)] == ["Chrome on Windows"]


def test_register_keeps_other_devices_for_regular_user(service, repos):
    devices, users = repos
    user = users.add(name="Bob")
    devices.add(user.id, "old-device")

    service.register(user, RequestInfo(user_agent=CHROME_WINDOWS), "s1")

    assert len(devices.list_for_user(user.id)) == 2


def test_verify_session_rejects_unknown_or_forced_out_session(service, repos):
    _, users = repos
    user = _locked_user(users)
    chrome = RequestInfo(user_agent=CHROME_WINDOWS)
    device = service.register(user, chrome, "s1")

    assert service.verify_session(user, chrome, "s1").id == device.id

    with pytest.raises(DeviceBlockedError) as exc:
        service.verify_session(user, chrome, "unknown")
    assert exc.value.message == FORCED_LOGOUT_MESSAGE

    service.force_logout(device.id)
    with pytest.raises(DeviceBlockedError):
        service.verify_session(user, chrome, "s1")


def test_session_check_for_regular_users(service, repos):
    _, users = repos
    user = users.add(name="Bob")
    device = service.register(user, RequestInfo(user_agent=CHROME_WINDOWS), "s1")

    assert service.ensure_session_active(user.id, "gone", missing_ok=True) is None
    assert service.ensure_session_active(user.id, "s1", missing_ok=True).id == device.id

    service.force_logout(device.id)
    with pytest.raises(DeviceBlockedError):
        service.ensure_session_active(user.id, "s1", missing_ok=True)


def test_logout_deactivates_the_session_device(service, repos):
    devices, users = repos
    user = users.add(name="Bob")
    device = service.register(user, RequestInfo(user_agent=CHROME_WINDOWS), "s1")

    service.deactivate_session("s1")

    assert devices.get_by_id(device.id).is_active is False


def test_force_logout_unknown_device(service):
    with pytest.raises(NotFoundError):
        service.force_logout(404)


def test_reset_devices_clears_every_device(service, repos, fixed_now):
    devices, users = repos
    user = _locked_user(users)
    devices.add(user.id, "a")
    devices.add(user.id, "b", is_active=False)

    removed = service.reset_devices(user.id, "lost phone")

    assert removed == 2
    assert devices.list_for_user(user.id) == []
    stored = users.get_by_id(user.id)
    assert stored.device_reset_at == fixed_now
    assert stored.device_reset_reason == "lost phone"
    assert service.can_login(stored, RequestInfo(user_agent=FIREFOX_LINUX)).allowed


def test_toggle_single_device_login(service, repos):
    _, users = repos
    user = users.add(name="Bob")

    assert service.toggle_single_device_login(user.id, True, "policy").single_device_login is True
    assert service.toggle_single_device_login(user.id, False).single_device_login is False
    with pytest.raises(NotFoundError):
        service.toggle_single_device_login(999, True)


def test_statistics(service, repos, fixed_now):
    devices, users = repos
    locked = _locked_user(users)
    other = users.add(name="Bob")
    devices.add(locked.id, "a", last_seen_at=fixed_now - timedelta(minutes=1))
    devices.add(other.id, "b", last_seen_at=fixed_now - timedelta(hours=2))
    devices.add(other.id, "c", is_active=False, last_seen_at=fixed_now)

    assert service.statistics() == {
        "total_devices": 3,
        "active_devices": 2,
        "online_devices": 1,
        "inactive_devices": 1,
        "users_with_single_device_enabled": 1,
    }


def test_cleanup_removes_only_stale_inactive_devices(service, repos, fixed_now):
    devices, users = repos
    user = users.add(name="Bob")
    stale = devices.add(user.id, "stale", is_active=False, last_seen_at=fixed_now - timedelta(days=45))
    recent = devices.add(user.id, "recent", is_active=False, last_seen_at=fixed_now - timedelta(days=3))
    active = devices.add(user.id, "active", last_seen_at=fixed_now - timedelta(days=90))

    assert service.cleanup_inactive() == 1
    assert devices.get_by_id(stale.id) is None
    assert devices.get_by_id(recent.id) is not None
    assert devices.get_by_id(active.id) is not None
    assert service.cleanup_inactive(days=1) == 1
