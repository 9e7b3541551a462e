from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import current_role, current_user_id, json_body, login_required, roles_required
from ..common.validators import FieldErrors, to_bool
from ..container import Container
from ..core.enums import MANAGER_ROLES, Role
from ..core.exceptions import AuthorizationError
from ..devices.fingerprint import request_info_from


def register(app: Flask, container: Container) -> None:
    managers = tuple(MANAGER_ROLES)

    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(
            data.get("user_name") or data.get("email") or "",
            data.get("password") or "",
            request_info_from(request),
        )

        session.clear()
        session.permanent = to_bool(data.get("remember", False))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        session["sid"] = s_user.session_id

        user = container.user_service.get(s_user.user_id)
        return jsonify({"message": "Logged in successfully.", "user": user.to_dict()})

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        container.auth_service.logout(session.get("sid"))
        session.clear()
        return jsonify({"message": "Logged out."})

    @app.route("/users/paginate", methods=["GET"], endpoint="users_paginate")
    @roles_required(*managers)
    def users_paginate():
        args = request.args
        page = container.user_service.paginate(
            page=args.get("page"),
            per_page=args.get("perPage"),
            search=args.get("search"),
            role=args.get("role"),
            department_id=args.get("department"),
        )
        return jsonify(page.to_dict(lambda u: u.to_dict()))

    @app.route("/users", methods=["POST"], endpoint="users_store")
    @roles_required(*managers)
    def users_store():
        user = container.user_service.create(json_body())
        return jsonify({"message": "User created successfully.", "user": user.to_dict()}), 201

    @app.route("/users/<int:user_id>", methods=["PUT", "POST"], endpoint="users_update")
    @roles_required(*managers)
    def users_update(user_id: int):
        user, messages = container.user_service.update(user_id, json_body())
        return jsonify({"user": user.to_dict(), "messages": messages})

    @app.route("/users/<int:user_id>/toggle-status", methods=["POST"], endpoint="users_toggleStatus")
    @roles_required(*managers)
    def users_toggle_status(user_id: int):
        user = container.user_service.toggle_status(user_id, json_body().get("active"))
        state = "activated" if user.active else "deactivated"
        return jsonify({"message": f"User {state} successfully.", "user": user.to_dict()})

    @app.route("/users/<int:user_id>", methods=["DELETE"], endpoint="users_delete")
    @roles_required(Role.ADMIN)
    def users_delete(user_id: int):
        container.user_service.delete(actor_id=current_user_id(), actor_role=current_role(), user_id=user_id)
        return jsonify({"message": "User deleted successfully.", "id": user_id})

    @app.route("/users/<int:user_id>/department", methods=["POST"], endpoint="users_update_department")
    @roles_required(*managers)
    def users_update_department(user_id: int):
        user = container.user_service.update_department(user_id, json_body().get("department"))
        return jsonify({"message": "Department updated successfully.", "user": user.to_dict()})

    @app.route("/users/<int:user_id>/designation", methods=["POST"], endpoint="users_update_designation")
    @roles_required(*managers)
    def users_update_designation(user_id: int):
        user = container.user_service.update_designation(user_id, json_body().get("designation"))
        return jsonify({"message": "Designation updated successfully.", "user": user.to_dict()})

    @app.route("/profile", methods=["GET"], endpoint="profile")
    @app.route("/profile/<int:user_id>", methods=["GET"], endpoint="profile_show")
    @login_required
    def profile(user_id: int | None = None):
        target = user_id or current_user_id()
        if target != current_user_id() and current_role() not in MANAGER_ROLES:
            raise AuthorizationError("This action is unauthorized.")
        return jsonify({"user": container.user_service.get(target).to_dict()})

    @app.route("/profile/update", methods=["POST"], endpoint="profile_update")
    @login_required
    def profile_update():
        user, messages = container.profile_service.update(
            actor_id=current_user_id(),
            actor_role=current_role(),
            payload=json_body(),
        )
        return jsonify({"user": user.to_dict(), "messages": messages})

    @app.route("/profile/image", methods=["POST"], endpoint="profile_image_upload")
    @login_required
    def profile_image_upload():
        errors = FieldErrors()
        target = errors.integer(request.form, "user_id", required=False, min_value=1) or current_user_id()
        errors.raise_if_any()
        if target != current_user_id() and current_role() not in MANAGER_ROLES:
            raise AuthorizationError("This action is unauthorized.")
        user = container.profile_image_service.upload(target, request.files.get("profile_image"))
        return jsonify({"message": "Profile image updated successfully.", "user": user.to_dict()})

    @app.route("/profile/image", methods=["DELETE"], endpoint="profile_image_remove")
    @login_required
    def profile_image_remove():
        user = container.profile_image_service.remove(current_user_id())
        return jsonify({"message": "Profile image removed.", "user": user.to_dict()})
