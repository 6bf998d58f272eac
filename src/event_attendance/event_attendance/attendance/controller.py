from __future__ import annotations

import hmac
from typing import Optional

from flask import Flask, current_app, g, jsonify, request

from ..auth.guards import session_required
from ..common.datetime_utils import parse_iso_date
from ..common.request_utils import client_key
from ..container import Container
from ..core.enums import Attribute, CheckInMethod, ScanStatus
from ..core.exceptions import AuthorizationError, RateLimitedError, ValidationError
from ..ratelimit.limiter import RateLimits, rate_limit_headers, rate_limited_headers


def _status_code(status: ScanStatus) -> int:
    return 403 if status == ScanStatus.ERROR else 200


def register(app: Flask, container: Container) -> None:
    @app.route("/api/scan", methods=["POST"], endpoint="api_scan")
    def api_scan():
        """Scanner endpoint. Invalid tickets and unknown participants get the same 403."""
        config = RateLimits.SCAN_API
        try:
            limit = container.rate_limiter.enforce(f"scan:{client_key()}", config)
        except RateLimitedError as e:
            return jsonify({"status": "error", "message": "Too many requests"}), 429, rate_limited_headers(e, config)
        headers = rate_limit_headers(limit, config)

        data = request.get_json(silent=True) or {}
        token = str(data.get("token") or "").strip()
        if not token:
            return jsonify({"status": "error", "message": "Token is required"}), 400, headers

        try:
            outcome = container.checkin_service.check_in_with_token(token, CheckInMethod.SCAN)
        except Exception:
            current_app.logger.exception("scan failed")
            return jsonify({"status": "error", "message": "Internal server error"}), 500, headers

        if outcome.status == ScanStatus.ERROR:
            body = {"status": "error", "message": "Invalid token"}
        else:
            body = outcome.to_dict()
        return jsonify(body), _status_code(outcome.status), headers

    @app.route("/api/checkin/manual", methods=["POST"], endpoint="api_checkin_manual")
    @session_required(container, staff=True)
    def api_checkin_manual():
        data = request.get_json(silent=True) or {}
        token = str(data.get("token") or "").strip()
        participant_id = str(data.get("participant_id") or "").strip()
        if not token and not participant_id:
            return jsonify({"status": "error", "message": "token or participant_id is required"}), 400

        try:
            if token:
                outcome = container.checkin_service.check_in_with_token(token, CheckInMethod.MANUAL)
            else:
                outcome = container.checkin_service.check_in_participant(participant_id, CheckInMethod.MANUAL)
        except Exception:
            current_app.logger.exception("manual check-in failed")
            return jsonify({"status": "error", "message": "Internal server error"}), 500

        current_app.logger.info(
            "manual check-in by %s: %s", g.participant.participant_id, outcome.status.value
        )
        return jsonify(outcome.to_dict()), _status_code(outcome.status)

    @app.route("/api/attendance/status", methods=["GET"], endpoint="api_attendance_status")
    @session_required(container)
    def api_attendance_status():
        """Per-unit attendance for one day. Organizers only see the units they run."""
        config = RateLimits.DEFAULT
        try:
            limit = container.rate_limiter.enforce(f"status:{client_key()}", config)
        except RateLimitedError as e:
            return jsonify({"error": "Too many requests"}), 429, rate_limited_headers(e, config)
        headers = rate_limit_headers(limit, config)

        try:
            raw_date = request.args.get("date")
            day = parse_iso_date(raw_date) if raw_date else None
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400, headers

        try:
            scope = container.participant_service.report_scope(g.participant.participant_id)
            data = container.export_service.build_status(day, scope, unit_id=request.args.get("unit_id") or None)
        except AuthorizationError:
            return jsonify({"error": "Forbidden"}), 403, headers
        except Exception:
            current_app.logger.exception("attendance status failed")
            return jsonify({"error": "Internal server error"}), 500, headers

        return jsonify(data.to_dict()), 200, headers

    def _api_key_ok(provided: Optional[str]) -> bool:
        expected = app.config.get("EXPORT_API_KEY") or ""
        if not expected or not provided:
            return False
        return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))

    @app.route("/api/attendance-export", methods=["GET"], endpoint="api_attendance_export")
    def api_attendance_export():
        """Spreadsheet sync feed.

        Query: `date` (repeatable, YYYY-MM-DD, default today), `attribute`, `unit_id`.
        The key comes from the `X-API-Key` header or the `apiKey` parameter.
        """
        config = RateLimits.EXPORT_API
        try:
            limit = container.rate_limiter.enforce(f"export:{client_key()}", config)
        except RateLimitedError as e:
            return jsonify({"status": "error", "message": "Too many requests"}), 429, rate_limited_headers(e, config)
        headers = rate_limit_headers(limit, config)

        if not _api_key_ok(request.headers.get("X-API-Key") or request.args.get("apiKey")):
            return jsonify({"error": "Unauthorized"}), 401, headers

        try:
            dates = [parse_iso_date(s) for s in request.args.getlist("date")]
            attribute_s = request.args.get("attribute")
            attribute = Attribute(attribute_s) if attribute_s else None
        except (ValidationError, ValueError) as e:
            return jsonify({"error": str(e)}), 400, headers

        try:
            data = container.export_service.build_export(dates, attribute=attribute, unit_id=request.args.get("unit_id"))
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400, headers
        except Exception:
            current_app.logger.exception("export failed")
            return jsonify({"error": "Internal server error"}), 500, headers

        return jsonify(data.to_dict()), 200, headers
