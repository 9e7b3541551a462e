from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import current_user_id, json_body, login_required, roles_required
from ..common.validators import to_bool
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import DeviceBlockedError, NotFoundError
from .fingerprint import request_info_from

UNGUARDED_ENDPOINTS = {"login", "logout", "static"}


def register(app: Flask, container: Container) -> None:
    devices = container.device_service

    @app.before_request
    def enforce_device_session():
        if request.endpoint in UNGUARDED_ENDPOINTS or "user_id" not in session:
            return None

        user = container.users_repo.get_by_id(int(session["user_id"]))
        if not user:
            return None

        sid = session.get("sid", "")
        try:
            if user.single_device_login:
                devices.verify_session(user, request_info_from(request), sid)
            else:
                devices.ensure_session_active(user.id, sid, missing_ok=True)
        except DeviceBlockedError as e:
            session.clear()
            return jsonify(e.to_dict()), e.status_code
        return None

    def _active_device(user_id: int):
        return next((d for d in devices.list_devices(user_id) if d.is_active), None)

    def _user_summary(user):
        active = _active_device(user.id)
        return {
            "id": user.id,
            "single_device_login": user.single_device_login,
            "active_device": {"id": active.id, "device_name": active.device_name} if active else None,
        }

    @app.route("/admin/users/<int:user_id>/devices", methods=["GET"], endpoint="admin_users_devices")
    @roles_required(Role.ADMIN)
    def admin_users_devices(user_id: int):
        user = container.users_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        return jsonify(
            {
                "user": _user_summary(user),
                "devices": [d.to_dict() for d in devices.list_devices(user_id)],
            }
        )

    @app.route("/admin/users/<int:user_id>/devices/toggle", methods=["POST"], endpoint="admin_users_devices_toggle")
    @roles_required(Role.ADMIN)
    def admin_users_devices_toggle(user_id: int):
        data = json_body()
        enabled = to_bool(data.get("enabled", False))
        user = devices.toggle_single_device_login(user_id, enabled, data.get("reason"))
        return jsonify(
            {
                "success": True,
                "message": f"Single device login {'enabled' if enabled else 'disabled'} for user.",
                "user": _user_summary(user),
            }
        )

    @app.route("/admin/users/<int:user_id>/devices/reset", methods=["POST"], endpoint="admin_users_devices_reset")
    @roles_required(Role.ADMIN)
    def admin_users_devices_reset(user_id: int):
        data = json_body()
        devices.reset_devices(user_id, data.get("reason"))
        user = container.users_repo.get_by_id(user_id)
        return jsonify(
            {
                "success": True,
                "message": "User device has been reset. They can now login from a new device.",
                "user": _user_summary(user),
            }
        )

    @app.route(
        "/admin/users/<int:user_id>/devices/<int:device_id>",
        methods=["DELETE"],
        endpoint="admin_users_devices_deactivate",
    )
    @roles_required(Role.ADMIN)
    def admin_users_devices_deactivate(user_id: int, device_id: int):
        device = container.devices_repo.get_by_id(device_id)
        if not device or device.user_id != user_id:
            raise NotFoundError("Device not found.")
        device = devices.force_logout(device_id)
        return jsonify({"success": True, "message": "Device has been logged out.", "device": device.to_dict()})

    @app.route("/admin/devices/statistics", methods=["GET"], endpoint="admin_devices_statistics")
    @roles_required(Role.ADMIN)
    def admin_devices_statistics():
        return jsonify(devices.statistics())

    @app.route("/my-devices", methods=["GET"], endpoint="user_devices")
    @login_required
    def user_devices():
        sid = session.get("sid")
        out = []
        for d in devices.list_devices(current_user_id()):
            item = d.to_dict()
            item["is_current"] = bool(sid) and d.session_id == sid
            out.append(item)
        return jsonify({"devices": out})

    @app.route("/my-devices/<int:device_id>", methods=["DELETE"], endpoint="user_devices_deactivate")
    @login_required
    def user_devices_deactivate(device_id: int):
        device = container.devices_repo.get_by_id(device_id)
        if not device or device.user_id != current_user_id():
            raise NotFoundError("Device not found.")
        device = devices.force_logout(device_id)
        return jsonify({"success": True, "message": "Device has been logged out.", "device": device.to_dict()})
