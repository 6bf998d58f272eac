"""Ticket tokens scanned at check-in.

Wire format::

    base64url(participant_id ":" issued_at_millis ":" nonce_hex) "." signature16

`signature16` is the first 16 hex characters of HMAC-SHA256(secret, payload). The
truncation keeps QR codes small; it is acceptable only because a ticket authorizes a
single idempotent check-in and the nonce comes from `secrets`.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_utc, to_epoch_millis
from ..core.constants import PLACEHOLDER_TICKET_PREFIX, TICKET_NONCE_BYTES, TICKET_SIGNATURE_LENGTH
from ..core.exceptions import ConfigurationMissingError, ValidationError
from .encoding import b64url_decode, b64url_encode
from .legacy import LegacyTokenWindow, decode_legacy_token, looks_like_legacy_token
from .model import TokenVerification

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"[0-9a-f]+")


def is_signed_ticket_format(token: Optional[str]) -> bool:
    """False for placeholder tickets, which must be regenerated before use."""
    if not token:
        return False
    return "." in token and not token.startswith(PLACEHOLDER_TICKET_PREFIX)


def placeholder_ticket(participant_id: str, *, now: Optional[datetime] = None) -> str:
    return f"{PLACEHOLDER_TICKET_PREFIX}{participant_id}-{to_epoch_millis(now or now_utc())}"


class TicketTokenCodec:
    def __init__(self, secret: str, *, legacy_window: Optional[LegacyTokenWindow] = None):
        if not secret:
            raise ConfigurationMissingError("TICKET_SECRET is not configured")
        self._key = secret.encode("utf-8")
        self._legacy_window = legacy_window or LegacyTokenWindow()

    def _sign(self, payload: str) -> str:
        digest = hmac.new(self._key, payload.encode("utf-8"), hashlib.sha256).hexdigest()
        return digest[:TICKET_SIGNATURE_LENGTH]

    def issue(self, participant_id: str, *, now: Optional[datetime] = None) -> str:
        if not participant_id:
            raise ValidationError("participant_id is required")
        issued_at = to_epoch_millis(now or now_utc())
        nonce = secrets.token_hex(TICKET_NONCE_BYTES)
        payload = f"{participant_id}:{issued_at}:{nonce}"
        return f"{b64url_encode(payload.encode('utf-8'))}.{self._sign(payload)}"

    def verify(self, token: Optional[str], *, now: Optional[datetime] = None) -> TokenVerification:
        if not token:
            return TokenVerification.invalid()

        if is_signed_ticket_format(token):
            return self._verify_signed(token)

        if looks_like_legacy_token(token):
            subject = decode_legacy_token(token, window=self._legacy_window, now=now)
            if subject:
                return TokenVerification.ok(subject)

        logger.debug("ticket rejected: unrecognized format")
        return TokenVerification.invalid()

    def _verify_signed(self, token: str) -> TokenVerification:
        payload_b64, _, signature = token.partition(".")
        if len(signature) != TICKET_SIGNATURE_LENGTH or not _HEX_RE.fullmatch(signature):
            return TokenVerification.invalid()

        raw = b64url_decode(payload_b64)
        if raw is None:
            return TokenVerification.invalid()
        try:
            payload = raw.decode("utf-8")
        except UnicodeDecodeError:
            return TokenVerification.invalid()

        parts = payload.rsplit(":", 2)
        if len(parts) != 3:
            return TokenVerification.invalid()
        participant_id, issued_at, nonce = parts
        if not participant_id or not issued_at.isdigit():
            return TokenVerification.invalid()
        if len(nonce) < TICKET_NONCE_BYTES * 2 or not _HEX_RE.fullmatch(nonce):
            return TokenVerification.invalid()

        if not hmac.compare_digest(signature, self._sign(payload)):
            logger.debug("ticket rejected: signature mismatch")
            return TokenVerification.invalid()

        return TokenVerification.ok(participant_id)
