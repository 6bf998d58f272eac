from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import as_utc, civil_date, now_utc
from ..core.constants import DEFAULT_CIVIL_TIMEZONE
from ..core.enums import Attribute, CheckInMethod
from ..core.exceptions import DuplicateCheckInError, ValidationError
from ..participants.repository import ParticipantRepository
from .model import (
    AttendanceFilter,
    AttendanceSummary,
    CheckInLookup,
    CheckInMark,
    CheckInResult,
    PresentParticipant,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """At most one check-in per participant per civil day.

    State per (participant, date) is Absent -> Present and never goes back. The
    existence check before the insert only spares the hot path a constraint error; the
    storage unique key decides which of several concurrent writers wins.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        participants: ParticipantRepository,
        *,
        tz_name: str = DEFAULT_CIVIL_TIMEZONE,
    ):
        self._attendance = attendance
        self._participants = participants
        self._tz_name = tz_name

    @property
    def tz_name(self) -> str:
        return self._tz_name

    def today(self, now: Optional[datetime] = None) -> date:
        return civil_date(now, self._tz_name)

    def find_check_in(self, participant_id: str, check_in_date: Optional[date] = None) -> CheckInLookup:
        record = self._attendance.get_for_participant_and_date(participant_id, check_in_date or self.today())
        if not record:
            return CheckInLookup(exists=False)
        return CheckInLookup(exists=True, method=record.method)

    def check_in(
        self,
        participant_id: str,
        unit_id: Optional[str],
        attribute: Attribute,
        method: CheckInMethod = CheckInMethod.SCAN,
        *,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        if not participant_id:
            raise ValidationError("participant_id is required")

        now = as_utc(now or now_utc())
        today = self.today(now)

        existing = self.find_check_in(participant_id, today)
        if existing.exists:
            return CheckInResult(success=False, is_new_check_in=False, existing_method=existing.method)

        try:
            record = self._attendance.create_checkin(
                participant_id=participant_id,
                check_in_date=today,
                check_in_timestamp=now,
                unit_id=unit_id,
                attribute=Attribute(attribute),
                method=CheckInMethod(method),
            )
        except DuplicateCheckInError:
            # Another scanner inserted between our read and write.
            winner = self.find_check_in(participant_id, today)
            logger.info("concurrent check-in for %s on %s resolved as duplicate", participant_id, today)
            return CheckInResult(success=False, is_new_check_in=False, existing_method=winner.method)

        logger.info("checked in %s on %s via %s", participant_id, today, record.method.value)
        return CheckInResult(success=True, is_new_check_in=True, record=record)

    def _date_of(self, flt: AttendanceFilter) -> date:
        return flt.date or self.today()

    def count_attendance(self, flt: Optional[AttendanceFilter] = None) -> int:
        flt = flt or AttendanceFilter()
        return self._attendance.count(check_in_date=self._date_of(flt), attribute=flt.attribute, unit_ids=flt.unit_ids)

    def get_present_users(self, flt: Optional[AttendanceFilter] = None) -> list[PresentParticipant]:
        flt = flt or AttendanceFilter()
        records = self._attendance.list_for_date(
            check_in_date=self._date_of(flt), attribute=flt.attribute, unit_ids=flt.unit_ids
        )
        return [PresentParticipant(record=r, participant=self._participants.get_by_id(r.participant_id)) for r in records]

    def get_absent_user_ids(self, flt: Optional[AttendanceFilter] = None) -> set[str]:
        """Eligible participants with no record for the date, whatever unit it was attributed to."""
        flt = flt or AttendanceFilter()
        eligible = self._participants.list_eligible_ids(attribute=flt.attribute, unit_ids=flt.unit_ids)
        present = {r.participant_id for r in self._attendance.list_for_date(check_in_date=self._date_of(flt))}
        return eligible - present

    def get_summary(self, flt: Optional[AttendanceFilter] = None) -> AttendanceSummary:
        flt = flt or AttendanceFilter()
        eligible = self._participants.list_eligible_ids(attribute=flt.attribute, unit_ids=flt.unit_ids)
        present = {r.participant_id for r in self._attendance.list_for_date(check_in_date=self._date_of(flt))}
        return AttendanceSummary(
            present=len(eligible & present),
            absent=len(eligible - present),
            total=len(eligible),
        )

    def get_attendance_by_date_range(self, start: date, end: date) -> dict[str, dict[date, CheckInMark]]:
        if end < start:
            raise ValidationError("end date is before start date")

        grouped: dict[str, dict[date, CheckInMark]] = {}
        for r in self._attendance.list_between(start_date=start, end_date=end):
            grouped.setdefault(r.participant_id, {})[r.check_in_date] = CheckInMark(
                timestamp=r.check_in_timestamp, method=r.method
            )
        return grouped
