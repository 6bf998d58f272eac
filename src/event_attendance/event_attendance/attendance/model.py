from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Attribute, CheckInMethod
from ..participants.model import Participant


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: at most one per (participant, civil date)."""

    attendance_id: Optional[int]
    participant_id: str
    check_in_date: date
    check_in_timestamp: datetime
    unit_id: Optional[str]
    attribute: Attribute
    method: CheckInMethod = CheckInMethod.SCAN


@dataclass(frozen=True)
class CheckInLookup:
    exists: bool
    method: Optional[CheckInMethod] = None


@dataclass(frozen=True)
class CheckInResult:
    success: bool
    is_new_check_in: bool
    existing_method: Optional[CheckInMethod] = None
    record: Optional[AttendanceRecord] = None


@dataclass(frozen=True)
class AttendanceFilter:
    date: Optional[date] = None
    attribute: Optional[Attribute] = None
    unit_ids: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class AttendanceSummary:
    present: int
    absent: int
    total: int


@dataclass(frozen=True)
class PresentParticipant:
    """Read-model: a check-in joined with the participant's profile."""

    record: AttendanceRecord
    participant: Optional[Participant]


@dataclass(frozen=True)
class CheckInMark:
    timestamp: Optional[datetime]
    method: CheckInMethod
