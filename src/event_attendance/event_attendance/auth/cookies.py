from __future__ import annotations

from flask import Response

from ..core.constants import SESSION_COOKIE_NAME


def set_session_cookie(response: Response, token: str, *, max_age: int, secure: bool) -> Response:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=max_age,
        httponly=True,
        secure=secure,
        samesite="Lax",
        path="/",
    )
    return response


def clear_session_cookie(response: Response, *, secure: bool) -> Response:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/", secure=secure, httponly=True, samesite="Lax")
    return response
