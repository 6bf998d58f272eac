from __future__ import annotations

from flask import Flask, current_app, g, jsonify

from ..common.request_utils import client_key
from ..container import Container
from ..core.exceptions import DomainError, RateLimitedError
from ..participants.model import ExternalIdentity
from ..ratelimit.limiter import RateLimits, rate_limited_headers
from .cookies import clear_session_cookie, set_session_cookie
from .guards import session_required


def _auth_rate_limited(container: Container):
    """429 response when the caller spent its auth window, else None."""
    config = RateLimits.AUTH_API
    try:
        container.rate_limiter.enforce(f"auth:{client_key()}", config)
    except RateLimitedError as e:
        return jsonify({"error": "Too many requests"}), 429, rate_limited_headers(e, config)
    return None


def register(app: Flask, container: Container) -> None:
    @app.route("/api/ticket", methods=["GET"], endpoint="api_ticket")
    @session_required(container)
    def api_ticket():
        """Current participant's ticket, replacing a placeholder on first view."""
        limited = _auth_rate_limited(container)
        if limited:
            return limited

        participant = g.participant
        try:
            token = container.participant_service.ensure_valid_ticket(participant.participant_id)
        except DomainError:
            current_app.logger.exception("ticket issue failed")
            return jsonify({"error": "Internal server error"}), 500

        return jsonify(
            {
                "participant_id": participant.participant_id,
                "display_name": participant.display_name,
                "attribute": participant.attribute.value,
                "ticket": token,
            }
        )

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        limited = _auth_rate_limited(container)
        if limited:
            return limited

        response = jsonify({"success": True})
        return clear_session_cookie(response, secure=bool(app.config.get("SESSION_COOKIE_SECURE", False)))


def start_session(app: Flask, container: Container, identity: ExternalIdentity):
    """Response for the login collaborator: registers the participant and sets the cookie.

    Must run inside the login request; it counts against the caller's auth window.
    """
    limited = _auth_rate_limited(container)
    if limited:
        return limited

    result = container.auth_service.sign_in(identity)
    response = jsonify({"participant_id": result.participant.participant_id})
    return set_session_cookie(
        response,
        result.session_token,
        max_age=container.auth_service.session_max_age,
        secure=bool(app.config.get("SESSION_COOKIE_SECURE", False)),
    )
