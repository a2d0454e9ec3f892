from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import admin_required, current_role, listing_to_json, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/projects", methods=["GET"], endpoint="list_projects")
    @login_required
    def list_projects():
        result = container.project_service.list_projects(
            mode=request.args.get("mode"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            cursor=request.args.get("cursor"),
            search=request.args.get("search", ""),
            client=request.args.get("client") or None,
        )
        return jsonify(listing_to_json(result, key="data"))

    @app.route("/api/projects/<int:project_id>", methods=["GET"], endpoint="get_project")
    @login_required
    def get_project(project_id: int):
        project = container.project_service.get_project(project_id=project_id)
        return jsonify(project.to_dict())

    @app.route("/api/projects/<int:project_id>/totals", methods=["PATCH"], endpoint="update_project_totals")
    @admin_required
    def update_project_totals(project_id: int):
        project = container.project_service.update_totals(
            current_role=current_role(),
            project_id=project_id,
            payload=request.get_json(silent=True) or {},
        )
        return jsonify(
            {
                "message": "Project point totals updated",
                "progress": {
                    method: {"total_points": snap["total_points"], "completed_points": snap["completed_points"]}
                    for method, snap in project.progress_snapshot().items()
                },
                "overall_percent": project.overall_percent,
            }
        )
