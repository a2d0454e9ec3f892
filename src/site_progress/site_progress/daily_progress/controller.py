from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user_id, listing_to_json, login_required
from ..container import Container
from ..core.constants import CONFIRM_CLEAR


def register(app: Flask, container: Container) -> None:
    base = "/api/projects/<int:project_id>/daily-progress"

    @app.route(base, methods=["GET"], endpoint="list_daily_progress")
    @login_required
    def list_daily_progress(project_id: int):
        result = container.daily_progress_service.list_reports(
            user_id=current_user_id(),
            project_id=project_id,
            mode=request.args.get("mode"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            cursor=request.args.get("cursor"),
            date_from=request.args.get("from"),
            date_to=request.args.get("to"),
            author=request.args.get("author"),
        )
        return jsonify(listing_to_json(result, key="items"))

    @app.route(f"{base}/<local_date>", methods=["PUT"], endpoint="upsert_daily_progress")
    @login_required
    def upsert_daily_progress(project_id: int, local_date: str):
        view = container.daily_progress_service.upsert(
            user_id=current_user_id(),
            project_id=project_id,
            local_date=local_date,
            payload=request.get_json(silent=True) or {},
            confirm_clear=request.args.get("confirm") == CONFIRM_CLEAR,
        )
        return jsonify({"message": "Daily progress saved", **view.to_dict()})

    @app.route(f"{base}/<local_date>", methods=["GET"], endpoint="get_daily_progress")
    @login_required
    def get_daily_progress(project_id: int, local_date: str):
        view = container.daily_progress_service.get(
            user_id=current_user_id(),
            project_id=project_id,
            local_date=local_date,
        )
        return jsonify(view.to_dict())

    @app.route(f"{base}/<local_date>", methods=["DELETE"], endpoint="delete_daily_progress")
    @login_required
    def delete_daily_progress(project_id: int, local_date: str):
        container.daily_progress_service.delete(
            user_id=current_user_id(),
            project_id=project_id,
            local_date=local_date,
        )
        return jsonify({"message": "Daily report deleted"})
