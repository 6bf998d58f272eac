from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_CIVIL_TIMEZONE
from ..core.exceptions import ValidationError

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    if not value or not _DATE_RE.fullmatch(value):
        raise ValidationError(f"invalid date: {value!r}")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"invalid date: {value!r}") from e


def now_utc() -> datetime:
    """Current aware UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    # Naive datetimes are treated as UTC, never as server-local time.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def civil_date(moment: Optional[datetime] = None, tz_name: str = DEFAULT_CIVIL_TIMEZONE) -> date:
    """Calendar date of `moment` in the fixed civil timezone."""
    moment = as_utc(moment or now_utc())
    return moment.astimezone(ZoneInfo(tz_name)).date()


def format_civil(moment: datetime, tz_name: str = DEFAULT_CIVIL_TIMEZONE) -> str:
    return as_utc(moment).astimezone(ZoneInfo(tz_name)).strftime("%Y-%m-%d %H:%M:%S")


def to_epoch_millis(moment: datetime) -> int:
    return int(as_utc(moment).timestamp() * 1000)
