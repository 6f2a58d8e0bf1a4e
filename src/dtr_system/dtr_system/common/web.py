"""Flask helpers shared by the JSON controllers."""

from __future__ import annotations

from functools import wraps

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    ImmutableStateError,
    NotFoundError,
    ValidationError,
)
from ..users.model import Actor
from .logging import get_logger

log = get_logger(__name__)

# Order matters: StaleRecordError is a ConflictError.
_STATUS_CODES = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ImmutableStateError, 423),
)


def status_for(exc: DomainError) -> int:
    for kind, code in _STATUS_CODES:
        if isinstance(exc, kind):
            return code
    return 400


def current_actor() -> Actor:
    """Actor from the session written by the identity provider."""
    office_id = session.get("office_id")
    return Actor(
        user_id=int(session["user_id"]),
        role=Role(session.get("role") or Role.PERSON.value),
        display_name=session.get("name") or "",
        office_id=int(office_id) if office_id not in (None, "") else None,
    )


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def json_endpoint(view):
    """Require a session and turn domain errors into JSON responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"message": "Please log in to continue"}), 401
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return jsonify({"message": str(e)}), status_for(e)
        except Exception:
            log.exception("unhandled_error", path=request.path, method=request.method)
            return jsonify({"message": "Internal server error"}), 500

    return wrapper


def require_staff(actor: Actor) -> None:
    if not actor.is_staff:
        raise AuthorizationError("Only office staff can perform this action")
