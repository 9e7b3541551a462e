from __future__ import annotations

from typing import Any, Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.http import current_role, current_user_id, json_body, login_required, roles_required
from ..container import Container
from ..core.enums import MANAGER_ROLES
from ..core.exceptions import AuthorizationError
from .export import XLSX_MIMETYPE, export_rows, template_xlsx, to_csv_bytes, to_xlsx_bytes
from .model import DailyWork
from .service import build_filters


def _query_args() -> dict[str, Any]:
    """Query string as a dict; repeated keys (``incharge=1&incharge=2``) become lists."""
    return {k: (v if len(v) > 1 else v[0]) for k, v in request.args.lists()}


def register(app: Flask, container: Container) -> None:
    managers = tuple(MANAGER_ROLES)
    works = container.daily_work_service

    def _visible_to() -> Optional[int]:
        return None if current_role() in MANAGER_ROLES else current_user_id()

    def _check_access(work: DailyWork) -> None:
        if current_role() in MANAGER_ROLES:
            return
        if current_user_id() not in (work.incharge, work.assigned):
            raise AuthorizationError("This action is unauthorized.")

    def _attachment(body: bytes, filename: str, mimetype: str):
        return app.response_class(
            body,
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/daily-works/paginate", methods=["GET"], endpoint="dailyWorks_paginate")
    @login_required
    def daily_works_paginate():
        args = _query_args()
        page = works.paginate(
            build_filters(args, visible_to=_visible_to()),
            page=args.get("page"),
            per_page=args.get("perPage"),
        )
        return jsonify(page.to_dict(lambda w: w.to_dict()))

    @app.route("/daily-works/all", methods=["GET"], endpoint="dailyWorks_all")
    @login_required
    def daily_works_all():
        rows = works.all(build_filters(_query_args(), visible_to=_visible_to()))
        return jsonify({"dailyWorks": [w.to_dict() for w in rows], "total": len(rows)})

    @app.route("/daily-works/add", methods=["POST"], endpoint="dailyWorks_add")
    @roles_required(*managers)
    def daily_works_add():
        work = works.create(json_body())
        return jsonify({"message": "Daily work added successfully", "dailyWork": work.to_dict()}), 201

    @app.route("/daily-works/<int:work_id>", methods=["PUT", "POST"], endpoint="dailyWorks_update")
    @roles_required(*managers)
    def daily_works_update(work_id: int):
        work = works.update(work_id, json_body())
        return jsonify({"message": "Daily work updated successfully", "dailyWork": work.to_dict()})

    @app.route("/daily-works/<int:work_id>", methods=["DELETE"], endpoint="dailyWorks_delete")
    @roles_required(*managers)
    def daily_works_delete(work_id: int):
        message = works.delete(work_id)
        return jsonify({"message": message, "id": work_id})

    @app.route("/daily-works/<int:work_id>/status", methods=["POST"], endpoint="dailyWorks_updateStatus")
    @login_required
    def daily_works_update_status(work_id: int):
        _check_access(works.get(work_id))
        work = works.update_status(work_id, json_body())
        return jsonify({"message": "Status updated successfully", "dailyWork": work.to_dict()})

    @app.route("/daily-works/<int:work_id>/assigned", methods=["POST"], endpoint="dailyWorks_updateAssigned")
    @roles_required(*managers)
    def daily_works_update_assigned(work_id: int):
        work = works.update_assigned(work_id, json_body().get("assigned"))
        return jsonify({"message": "Assigned user updated successfully", "dailyWork": work.to_dict()})

    @app.route(
        "/daily-works/<int:work_id>/submission-date", methods=["POST"], endpoint="dailyWorks_updateSubmissionTime"
    )
    @login_required
    def daily_works_update_submission_time(work_id: int):
        _check_access(works.get(work_id))
        work = works.update_submission_date(work_id, json_body())
        return jsonify({"message": "RFI submission date updated successfully", "dailyWork": work.to_dict()})

    @app.route(
        "/daily-works/<int:work_id>/inspection-details",
        methods=["POST"],
        endpoint="dailyWorks_updateInspectionDetails",
    )
    @login_required
    def daily_works_update_inspection_details(work_id: int):
        _check_access(works.get(work_id))
        work = works.update_inspection_details(work_id, json_body().get("inspection_details"))
        return jsonify({"message": "Inspection details updated successfully", "dailyWork": work.to_dict()})

    @app.route("/daily-works/export", methods=["POST"], endpoint="dailyWorks_export")
    @login_required
    def daily_works_export():
        data = json_body()
        rows = works.all(build_filters(data, visible_to=_visible_to()))

        names: dict[Optional[int], str] = {}

        def user_name(user_id: Optional[int]) -> str:
            if user_id not in names:
                user = container.users_repo.get_by_id(user_id) if user_id else None
                names[user_id] = user.name if user else "N/A"
            return names[user_id]

        columns = data.get("columns")
        if isinstance(columns, str):
            columns = [c.strip() for c in columns.split(",") if c.strip()]
        headers, records = export_rows(rows, columns, user_name)

        stamp = now_local().strftime("%Y_%m_%d_%H_%M_%S")
        if str(data.get("format") or "csv").lower() == "xlsx":
            return _attachment(to_xlsx_bytes(headers, records), f"daily_works_{stamp}.xlsx", XLSX_MIMETYPE)
        return _attachment(to_csv_bytes(headers, records), f"daily_works_{stamp}.csv", "text/csv")

    @app.route("/daily-works/import", methods=["POST"], endpoint="dailyWorks_import")
    @roles_required(*managers)
    def daily_works_import():
        results = container.daily_work_importer.import_file(request.files.get("file"))
        return jsonify({"message": "Import completed successfully.", "results": results})

    @app.route("/daily-works/import/template", methods=["GET"], endpoint="dailyWorks_downloadTemplate")
    @roles_required(*managers)
    def daily_works_download_template():
        stamp = now_local().strftime("%Y-%m-%d_%H-%M-%S")
        return _attachment(template_xlsx(), f"daily_works_import_template_{stamp}.xlsx", XLSX_MIMETYPE)

    @app.route("/daily-works-summary", methods=["GET"], endpoint="daily_works_summary")
    @login_required
    def daily_works_summary():
        incharge = _visible_to() or request.args.get("incharge", type=int)
        summaries = works.summaries(incharge=incharge)
        return jsonify({
            "summaries": [s.to_dict() for s in summaries],
            "totals": works.summary_totals(summaries),
        })
