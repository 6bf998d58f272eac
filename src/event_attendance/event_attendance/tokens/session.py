from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import ConfigurationMissingError, ValidationError
from .encoding import b64url_decode
from .legacy import LegacyTokenWindow, decode_legacy_token, looks_like_legacy_token
from .model import TokenVerification

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def looks_like_signed_session(token: str) -> bool:
    """Structural marker of the signed format: three canonical base64url segments."""
    segments = token.split(".")
    if len(segments) != 3:
        return False
    return all(b64url_decode(segment) is not None for segment in segments)


class SessionTokenCodec:
    """Browser session credential carrying only the subject id and expiry."""

    def __init__(
        self,
        secret: str,
        *,
        session_days: int = DEFAULT_SESSION_DAYS,
        legacy_window: Optional[LegacyTokenWindow] = None,
    ):
        if not secret:
            raise ConfigurationMissingError("SESSION_SECRET is not configured")
        self._secret = secret
        self._lifetime = timedelta(days=int(session_days))
        self._legacy_window = legacy_window or LegacyTokenWindow()

    @property
    def max_age_seconds(self) -> int:
        return int(self._lifetime.total_seconds())

    def issue(self, subject_id: str, *, now: Optional[datetime] = None) -> str:
        if not subject_id:
            raise ValidationError("subject_id is required")
        now = now or now_utc()
        claims = {"sub": subject_id, "iat": now, "exp": now + self._lifetime}
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: Optional[str], *, now: Optional[datetime] = None) -> TokenVerification:
        if not token:
            return TokenVerification.invalid()
        now = now or now_utc()

        if looks_like_signed_session(token):
            return self._verify_signed(token, now)

        if looks_like_legacy_token(token):
            subject = decode_legacy_token(token, window=self._legacy_window, now=now)
            if subject:
                return TokenVerification.ok(subject)

        return TokenVerification.invalid()

    def _verify_signed(self, token: str, now: datetime) -> TokenVerification:
        try:
            # Expiry is checked below against `now` so callers control the clock.
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM], options={"verify_exp": False})
        except (JWTError, ValueError) as e:
            logger.debug("session rejected: %s", type(e).__name__)
            return TokenVerification.invalid()

        subject = claims.get("sub")
        exp = claims.get("exp")
        if not isinstance(subject, str) or not subject:
            return TokenVerification.invalid()
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return TokenVerification.invalid()
        if now.timestamp() >= exp:
            return TokenVerification.invalid()

        return TokenVerification.ok(subject)
