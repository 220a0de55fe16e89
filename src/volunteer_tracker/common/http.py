"""Route-boundary helpers shared by the controllers."""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Dict, Optional

from flask import jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import AlreadyCheckedIn, DomainError, ValidationError
from .datetime_utils import parse_iso_date
from .permissions import Actor
from .validators import optional_int

logger = logging.getLogger(__name__)


def json_ok(data: Any = None, *, status: int = 200, **extra: Any):
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def json_error(exc: DomainError):
    body: Dict[str, Any] = {"success": False, "message": str(exc), "error": exc.kind}
    if isinstance(exc, AlreadyCheckedIn) and exc.check_in_id is not None:
        body["checkInId"] = exc.check_in_id
    return jsonify(body), exc.status_code


def register_error_handlers(app) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        return json_error(exc)

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"success": False, "message": exc.description}), exc.code
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500


def login_user(session_user) -> None:
    session.clear()
    session.permanent = True
    session["user_id"] = session_user.user_id
    session["name"] = session_user.name
    session["role"] = session_user.role.value


def session_actor() -> Optional[Actor]:
    """Actor from the signed session cookie (not re-read from the database)."""

    if "user_id" not in session:
        return None
    return Actor(user_id=int(session["user_id"]), role=Role(session.get("role", Role.PENDING.value)))


def login_required(load_actor):
    """Decorator factory: resolve the caller and pass it as ``actor``.

    ``load_actor`` re-reads the user so role changes and deactivation apply
    on the next request.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            cached = session_actor()
            actor = load_actor(cached.user_id) if cached else None
            if actor is None or not actor.is_active:
                session.clear()
                return jsonify({"success": False, "message": "Unauthorized", "error": "AuthenticationError"}), 401
            return view(*args, actor=actor, **kwargs)

        return wrapper

    return decorator


def payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def query_date(name: str) -> Optional[date]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return parse_iso_date(raw[:10])
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def query_int(name: str) -> Optional[int]:
    return optional_int(request.args.get(name), name, minimum=1)
