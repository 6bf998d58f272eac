from __future__ import annotations

from functools import wraps

from flask import g, jsonify, request

from ..core.constants import SESSION_COOKIE_NAME
from ..core.exceptions import AuthenticationError, AuthorizationError


def session_required(container, *, staff: bool = False):
    """Decorator factory: load the session participant into `g.participant`.

    Missing or invalid sessions get 401; non-staff on staff routes get 403.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                participant = container.auth_service.authenticate(request.cookies.get(SESSION_COOKIE_NAME))
            except (AuthenticationError, AuthorizationError):
                return jsonify({"error": "Unauthorized"}), 401

            if staff:
                try:
                    container.auth_service.require_staff(participant)
                except AuthorizationError:
                    return jsonify({"error": "Forbidden"}), 403

            g.participant = participant
            return view(*args, **kwargs)

        return wrapper

    return decorator
