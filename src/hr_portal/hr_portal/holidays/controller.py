from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, login_required, roles_required
from ..container import Container
from ..core.enums import MANAGER_ROLES


def register(app: Flask, container: Container) -> None:
    holidays = container.holiday_service

    def _all():
        return [h.to_dict() for h in holidays.list()]

    @app.route("/holidays", methods=["GET"], endpoint="holidays")
    @login_required
    def holidays_index():
        return jsonify({"holidays": _all()})

    @app.route("/holidays", methods=["POST"], endpoint="holidays_add")
    @roles_required(*MANAGER_ROLES)
    def holidays_add():
        holiday, created = holidays.save(json_body())
        message = "Holiday added successfully." if created else "Holiday updated successfully."
        return jsonify({"message": message, "holiday": holiday.to_dict(), "holidays": _all()}), (201 if created else 200)

    @app.route("/holidays/<int:holiday_id>", methods=["DELETE"], endpoint="holidays_delete")
    @roles_required(*MANAGER_ROLES)
    def holidays_delete(holiday_id: int):
        holidays.delete(holiday_id)
        return jsonify({"message": "Holiday deleted successfully.", "holidays": _all()})
