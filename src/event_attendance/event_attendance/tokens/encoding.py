from __future__ import annotations

import base64
import binascii
from typing import Optional


def b64url_encode(raw: bytes) -> str:
    """Unpadded base64url, as used on the wire."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> Optional[bytes]:
    """Strict base64url decode.

    Returns None unless `segment` is the canonical encoding of the decoded bytes, so
    changing unused trailing bits yields an invalid segment instead of the same payload.
    """
    if not segment or "=" in segment:
        return None
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        return None
    if b64url_encode(raw) != segment:
        return None
    return raw
