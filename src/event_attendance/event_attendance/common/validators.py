from __future__ import annotations

from typing import Optional


def split_id_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated id list, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_flag(value: Optional[str], *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}
