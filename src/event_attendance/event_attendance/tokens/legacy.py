"""Legacy unsigned token format.

Older sessions and tickets were `base64url(json{"userId", "exp"})` with `exp` in epoch
milliseconds and no signature. They are accepted only while the migration window is
open; once `cutoff` passes (or when no cutoff is configured) this path rejects
everything. Delete this module together with the `LEGACY_TOKENS_UNTIL` setting after
the window closes.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_utc, to_epoch_millis
from .encoding import b64url_decode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyTokenWindow:
    cutoff: Optional[datetime] = None

    def is_open(self, now: Optional[datetime] = None) -> bool:
        if self.cutoff is None:
            return False
        return (now or now_utc()) < self.cutoff


def looks_like_legacy_token(token: str) -> bool:
    """Structural detector: a single base64url segment decoding to a JSON object."""
    if not token or "." in token:
        return False
    raw = b64url_decode(token)
    if raw is None:
        return False
    return raw.lstrip().startswith(b"{")


def decode_legacy_token(token: str, *, window: LegacyTokenWindow, now: Optional[datetime] = None) -> Optional[str]:
    """Return the subject id of a still-valid legacy token, else None."""
    now = now or now_utc()
    if not window.is_open(now):
        return None
    if not looks_like_legacy_token(token):
        return None

    try:
        payload = json.loads(b64url_decode(token).decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None

    user_id = payload.get("userId")
    exp = payload.get("exp")
    if not isinstance(user_id, str) or not user_id:
        return None
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    if to_epoch_millis(now) > exp:
        return None

    logger.info("accepted legacy token during migration window")
    return user_id
