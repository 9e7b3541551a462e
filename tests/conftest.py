from __future__ import annotations

from datetime import datetime

import pytest

from src.hr_portal.hr_portal.attendance import service as attendance_service
from src.hr_portal.hr_portal.container import assemble
from src.hr_portal.hr_portal.core.enums import Role
from src.hr_portal.hr_portal.daily_works import controller as daily_works_controller
from src.hr_portal.hr_portal.daily_works import service as daily_works_service
from src.hr_portal.hr_portal.devices import service as device_service
from src.hr_portal.hr_portal.main import create_app
from src.hr_portal.hr_portal.users import profile
from tests.fakes import (
    CHROME_WINDOWS,
    InMemoryAttendance,
    InMemoryDailyWorks,
    InMemoryDepartments,
    InMemoryDesignations,
    InMemoryDevices,
    InMemoryHolidays,
    InMemoryJurisdictions,
    InMemorySummaries,
    InMemoryUsers,
)

FIXED_NOW = datetime(2026, 10, 18, 9, 30, 0)


@pytest.fixture
def fixed_now(monkeypatch):
    for module in (device_service, attendance_service, profile, daily_works_service, daily_works_controller):
        monkeypatch.setattr(module, "now_local", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def container(tmp_path, fixed_now):
    users = InMemoryUsers()
    return assemble(
        users_repo=users,
        devices_repo=InMemoryDevices(),
        departments_repo=InMemoryDepartments(),
        designations_repo=InMemoryDesignations(),
        holidays_repo=InMemoryHolidays(),
        attendance_repo=InMemoryAttendance(users),
        daily_works_repo=InMemoryDailyWorks(),
        jurisdictions_repo=InMemoryJurisdictions(),
        summaries_repo=InMemorySummaries(),
        upload_folder=tmp_path / "uploads",
        max_image_bytes=1024,
    )


@pytest.fixture
def people(container):
    """admin, hr and two employees; passwords are ``secret123``."""
    users = container.users_repo
    return {
        "admin": users.add(name="Admin", role=Role.ADMIN, user_name="admin"),
        "hr": users.add(name="Helen HR", role=Role.HR, user_name="hr"),
        "alice": users.add(name="Alice", user_name="alice", employee_id="E-001"),
        "bob": users.add(name="Bob", user_name="bob", employee_id="E-002"),
    }


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


def _browser(app, user_agent: str):
    test_client = app.test_client()
    test_client.environ_base["HTTP_USER_AGENT"] = user_agent
    return test_client


@pytest.fixture
def client(app):
    return _browser(app, CHROME_WINDOWS)


@pytest.fixture
def logged_in(app):
    """A fresh test client with a session for ``user_name``."""

    def _login(user_name: str, password: str = "secret123", user_agent: str = CHROME_WINDOWS):
        browser = _browser(app, user_agent)
        response = browser.post("/login", json={"user_name": user_name, "password": password})
        assert response.status_code == 200, response.get_json()
        return browser

    return _login
