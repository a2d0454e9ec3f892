from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import PaginationMode, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, DomainError
from .pagination import PageResult


def current_user_id() -> int:
    """Actor identity placed into the session by the login layer."""
    raw = session.get("user_id")
    if raw is None:
        raise AuthenticationError("Unauthorized")
    return int(raw)


def current_role() -> Optional[Role]:
    try:
        return Role(session.get("role"))
    except ValueError:
        return None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            raise AuthenticationError("Unauthorized")
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            raise AuthenticationError("Unauthorized")
        if current_role() != Role.ADMIN:
            raise AuthorizationError("Access denied")
        return view(*args, **kwargs)

    return wrapper


def error_response(kind: str, message: str, status_code: int, **extra):
    body = {"success": False, "error": kind, "message": message}
    body.update(extra)
    return jsonify(body), status_code


def domain_error_response(e: DomainError):
    extra = {}
    methods = getattr(e, "methods", None)
    if methods:
        extra["methods"] = methods
    return error_response(e.kind, str(e), e.status_code, **extra)


def listing_to_json(result, *, key: str) -> dict:
    """Render a ``PageResult``/``CursorPage`` of entities exposing ``to_dict``."""

    if isinstance(result, PageResult):
        return {
            "mode": PaginationMode.PAGING.value,
            "page": result.page,
            "limit": result.limit,
            "total_items": result.total_items,
            "total_pages": result.total_pages,
            key: [row.to_dict() for row in result.items],
        }
    return {
        "mode": PaginationMode.CURSOR.value,
        key: [row.to_dict() for row in result.items],
        "next_cursor": result.next_cursor,
        "has_more": result.has_more,
    }
