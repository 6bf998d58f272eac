from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TokenVerification:
    """Result of verifying a session or ticket token. Never carries a partial payload."""

    valid: bool
    subject_id: Optional[str] = None

    @classmethod
    def invalid(cls) -> "TokenVerification":
        return cls(valid=False)

    @classmethod
    def ok(cls, subject_id: str) -> "TokenVerification":
        return cls(valid=True, subject_id=subject_id)
