from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, login_required, roles_required
from ..container import Container
from ..core.enums import MANAGER_ROLES


def register(app: Flask, container: Container) -> None:
    managers = tuple(MANAGER_ROLES)
    departments = container.department_service
    designations = container.designation_service

    def _department_list():
        return [d.to_dict() for d in departments.list()]

    def _designation_list():
        return [d.to_dict() for d in designations.list()]

    @app.route("/departments", methods=["GET"], endpoint="departments")
    @login_required
    def departments_index():
        if request.args.get("tree"):
            return jsonify({"departments": departments.tree()})
        return jsonify({"departments": _department_list()})

    @app.route("/departments/stats", methods=["GET"], endpoint="departments_stats")
    @roles_required(*managers)
    def departments_stats():
        return jsonify(departments.stats())

    @app.route("/departments", methods=["POST"], endpoint="departments_store")
    @roles_required(*managers)
    def departments_store():
        department = departments.create(json_body())
        return jsonify(
            {"message": "Department created successfully.", "department": department.to_dict(), "departments": _department_list()}
        ), 201

    @app.route("/departments/<int:department_id>", methods=["PUT", "POST"], endpoint="departments_update")
    @roles_required(*managers)
    def departments_update(department_id: int):
        department = departments.update(department_id, json_body())
        return jsonify(
            {"message": "Department updated successfully.", "department": department.to_dict(), "departments": _department_list()}
        )

    @app.route("/departments/<int:department_id>", methods=["DELETE"], endpoint="departments_delete")
    @roles_required(*managers)
    def departments_delete(department_id: int):
        departments.delete(department_id)
        return jsonify({"message": "Department deleted successfully.", "departments": _department_list()})

    @app.route("/designations", methods=["GET"], endpoint="designations")
    @login_required
    def designations_index():
        department_id = request.args.get("department_id", type=int)
        if request.args.get("tree"):
            return jsonify({"designations": designations.tree(department_id)})
        return jsonify({"designations": [d.to_dict() for d in designations.list(department_id)]})

    @app.route("/designations", methods=["POST"], endpoint="designations_store")
    @roles_required(*managers)
    def designations_store():
        designation = designations.create(json_body())
        return jsonify(
            {"message": "Designation created successfully.", "designation": designation.to_dict(), "designations": _designation_list()}
        ), 201

    @app.route("/designations/<int:designation_id>", methods=["PUT", "POST"], endpoint="designations_update")
    @roles_required(*managers)
    def designations_update(designation_id: int):
        designation = designations.update(designation_id, json_body())
        return jsonify(
            {"message": "Designation updated successfully.", "designation": designation.to_dict(), "designations": _designation_list()}
        )

    @app.route("/designations/<int:designation_id>", methods=["DELETE"], endpoint="designations_delete")
    @roles_required(*managers)
    def designations_delete(designation_id: int):
        designations.delete(designation_id)
        return jsonify({"message": "Designation deleted successfully.", "designations": _designation_list()})
