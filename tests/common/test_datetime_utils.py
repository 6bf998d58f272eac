from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.event_attendance.event_attendance.common.datetime_utils import civil_date, format_civil, parse_iso_date
from src.event_attendance.event_attendance.core.exceptions import ValidationError


def test_parse_iso_date():
    assert parse_iso_date("2025-03-01") == date(2025, 3, 1)


@pytest.mark.parametrize("value", ["", "2025-3-1", "2025-03-01\n", "2025-03-01T00:00", "2025-13-40"])
def test_parse_iso_date_rejects(value):
    with pytest.raises(ValidationError):
        parse_iso_date(value)


def test_civil_date_crosses_midnight_in_tokyo():
    late_utc = datetime(2025, 3, 1, 15, 30, tzinfo=timezone.utc)

    assert civil_date(late_utc, "Asia/Tokyo") == date(2025, 3, 2)
    assert format_civil(late_utc, "Asia/Tokyo") == "2025-03-02 00:30:00"
