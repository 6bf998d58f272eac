from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Attribute, CheckInMethod
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_participant_and_date(self, participant_id: str, check_in_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        participant_id: str,
        check_in_date: date,
        check_in_timestamp: datetime,
        unit_id: Optional[str],
        attribute: Attribute,
        method: CheckInMethod,
    ) -> AttendanceRecord:
        """Insert a record.

        Must raise DuplicateCheckInError when (participant_id, check_in_date) already
        exists; the storage unique key is the authoritative guard.
        """
        raise NotImplementedError

    def count(
        self,
        *,
        check_in_date: date,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> int:
        raise NotImplementedError

    def list_for_date(
        self,
        *,
        check_in_date: date,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_between(self, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
