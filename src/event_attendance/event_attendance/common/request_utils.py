from __future__ import annotations

from flask import request


def client_key() -> str:
    """Caller address, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"
