# Overview: Request decorators for API routes (actor resolution, capability gate, error mapping).

from functools import wraps
from flask import request, jsonify, g, current_app

from .extensions import db
from .models import User
from .permissions import role_has_capability
from .services.access_guard import Actor
from .services.errors import (
    AuthorizationError,
    ContentionError,
    InsufficientStock,
    InvalidTransition,
    LedgerError,
    NotFoundError,
    StorageFault,
)
from .validation import MAX_INT, ValidationError

ACTOR_HEADER = "X-User-Id"

# Domain error -> HTTP status
ERROR_STATUS = (
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidTransition, 409),
    (InsufficientStock, 409),
    (ContentionError, 503),
    (StorageFault, 500),
)


def _is_authenticated() -> bool:
    return hasattr(g, 'actor') and hasattr(g, 'current_user')


def require_actor(f):
    """
    Resolve the acting user from the upstream identity header.

    Authentication happens in front of this service; the gateway forwards the
    authenticated user id in X-User-Id. Sets the following Flask g attributes:
    - g.current_user: The active User row
    - g.actor: Actor(user_id, role, site_id) handed to every service call

    Returns 401 if the header is missing, malformed, or names an unknown or
    deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get(ACTOR_HEADER, "").strip()
        if not raw:
            return jsonify({"error": "Authentication required"}), 401
        if not raw.isascii() or not raw.isdecimal() or int(raw) > MAX_INT:
            return jsonify({"error": f"{ACTOR_HEADER} must be a user id"}), 401

        user = db.session.get(User, int(raw))
        if user is None or not user.is_active:
            return jsonify({"error": "Unknown or inactive user"}), 401

        g.current_user = user
        g.actor = Actor.from_user(user)
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """
    Require the actor's role to hold a capability.

    Site authority is checked by the service layer once the target site is
    known; this only turns away roles that can never perform the operation.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_actor was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not role_has_capability(g.actor.role, capability):
                current_app.logger.warning(
                    "capability denied user=%s role=%s capability=%s path=%s",
                    g.actor.user_id,
                    g.actor.role,
                    capability,
                    request.path,
                )
                return jsonify({
                    "error": "forbidden",
                    "capability": capability,
                    "message": f"Role '{g.actor.role}' lacks {capability}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def error_response(exc: Exception):
    """Roll back and turn an exception from a service call into a JSON response."""
    db.session.rollback()

    if isinstance(exc, ValidationError):
        return jsonify({"error": "validation_error", "message": str(exc)}), 400

    if isinstance(exc, LedgerError):
        for error_type, status in ERROR_STATUS:
            if isinstance(exc, error_type):
                break
        else:
            status = 500

        if isinstance(exc, ContentionError):
            current_app.logger.warning("Ledger contention on %s %s: %s", request.method, request.path, exc)
        elif isinstance(exc, StorageFault):
            current_app.logger.exception("Storage fault on %s %s", request.method, request.path)
        return jsonify(exc.to_dict()), status

    current_app.logger.exception("Unexpected error on %s %s", request.method, request.path)
    return jsonify({"error": "internal_error", "message": "Unexpected error"}), 500
