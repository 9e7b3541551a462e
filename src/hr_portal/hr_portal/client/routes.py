"""Named routes of the portal API.

Names match the server endpoints with dots instead of underscores
(``users.store`` is served by the ``users_store`` endpoint).
"""
from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote

ROUTES: dict[str, tuple[str, str]] = {
    "login": ("POST", "/login"),
    "logout": ("POST", "/logout"),
    # users / profile
    "users.paginate": ("GET", "/users/paginate"),
    "users.store": ("POST", "/users"),
    "users.update": ("PUT", "/users/{id}"),
    "users.toggleStatus": ("POST", "/users/{id}/toggle-status"),
    "users.delete": ("DELETE", "/users/{id}"),
    "users.update.department": ("POST", "/users/{id}/department"),
    "users.update.designation": ("POST", "/users/{id}/designation"),
    "profile": ("GET", "/profile"),
    "profile.show": ("GET", "/profile/{id}"),
    "profile.update": ("POST", "/profile/update"),
    "profile.image.upload": ("POST", "/profile/image"),
    "profile.image.remove": ("DELETE", "/profile/image"),
    # devices
    "admin.users.devices": ("GET", "/admin/users/{user_id}/devices"),
    "admin.users.devices.toggle": ("POST", "/admin/users/{user_id}/devices/toggle"),
    "admin.users.devices.reset": ("POST", "/admin/users/{user_id}/devices/reset"),
    "admin.users.devices.deactivate": ("DELETE", "/admin/users/{user_id}/devices/{device_id}"),
    "admin.devices.statistics": ("GET", "/admin/devices/statistics"),
    "user.devices": ("GET", "/my-devices"),
    "user.devices.deactivate": ("DELETE", "/my-devices/{device_id}"),
    # org
    "departments": ("GET", "/departments"),
    "departments.stats": ("GET", "/departments/stats"),
    "departments.store": ("POST", "/departments"),
    "departments.update": ("PUT", "/departments/{id}"),
    "departments.delete": ("DELETE", "/departments/{id}"),
    "designations": ("GET", "/designations"),
    "designations.store": ("POST", "/designations"),
    "designations.update": ("PUT", "/designations/{id}"),
    "designations.delete": ("DELETE", "/designations/{id}"),
    # holidays / attendance
    "holidays": ("GET", "/holidays"),
    "holidays.add": ("POST", "/holidays"),
    "holidays.delete": ("DELETE", "/holidays/{id}"),
    "attendance.mark-as-present": ("POST", "/attendance/mark-as-present"),
    "attendance.timesheet": ("GET", "/attendance/timesheet"),
    "attendance.absent": ("GET", "/attendance/absent"),
    # daily works
    "dailyWorks.paginate": ("GET", "/daily-works/paginate"),
    "dailyWorks.all": ("GET", "/daily-works/all"),
    "dailyWorks.add": ("POST", "/daily-works/add"),
    "dailyWorks.update": ("PUT", "/daily-works/{id}"),
    "dailyWorks.delete": ("DELETE", "/daily-works/{id}"),
    "dailyWorks.updateStatus": ("POST", "/daily-works/{id}/status"),
    "dailyWorks.updateAssigned": ("POST", "/daily-works/{id}/assigned"),
    "dailyWorks.updateSubmissionTime": ("POST", "/daily-works/{id}/submission-date"),
    "dailyWorks.updateInspectionDetails": ("POST", "/daily-works/{id}/inspection-details"),
    "dailyWorks.export": ("POST", "/daily-works/export"),
    "dailyWorks.import": ("POST", "/daily-works/import"),
    "dailyWorks.downloadTemplate": ("GET", "/daily-works/import/template"),
    "daily-works-summary": ("GET", "/daily-works-summary"),
}

_PLACEHOLDER = re.compile(r"{(\w+)}")


class RouteError(LookupError):
    """Unknown route name or missing path parameter."""


def url_for(name: str, **params: Any) -> tuple[str, str]:
    """Resolve a route name to ``(method, path)``; leftover params are ignored."""
    try:
        method, template = ROUTES[name]
    except KeyError:
        raise RouteError(f"Unknown route: {name}") from None

    def _sub(m: re.Match) -> str:
        key = m.group(1)
        if params.get(key) is None:
            raise RouteError(f"Route {name} requires parameter '{key}'")
        return quote(str(params[key]), safe="")

    return method, _PLACEHOLDER.sub(_sub, template)
