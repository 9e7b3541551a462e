from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_body, roles_required
from ..common.validators import FieldErrors
from ..container import Container
from ..core.enums import MANAGER_ROLES


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    managers = tuple(MANAGER_ROLES)

    def _date_arg():
        errors = FieldErrors()
        day = errors.date(request.args, "date", required=False)
        errors.raise_if_any()
        return day

    @app.route("/attendance/mark-as-present", methods=["POST"], endpoint="attendance_mark_as_present")
    @roles_required(*managers)
    def attendance_mark_as_present():
        record = attendance.mark_as_present(actor_id=current_user_id(), data=json_body())
        return jsonify({"message": "Attendance marked as present successfully.", "attendance": record.to_dict()}), 201

    @app.route("/attendance/timesheet", methods=["GET"], endpoint="attendance_timesheet")
    @roles_required(*managers)
    def attendance_timesheet():
        page = attendance.timesheet(
            work_date=_date_arg(),
            page=request.args.get("page"),
            per_page=request.args.get("perPage"),
            search=request.args.get("search"),
        )
        return jsonify(page.to_dict(lambda row: row.to_dict()))

    @app.route("/attendance/absent", methods=["GET"], endpoint="attendance_absent")
    @roles_required(*managers)
    def attendance_absent():
        users = attendance.absent(_date_arg())
        return jsonify(
            {
                "absent_users": [
                    {"id": u.id, "name": u.name, "employee_id": u.employee_id, "department_id": u.department_id}
                    for u in users
                ],
                "total": len(users),
            }
        )
