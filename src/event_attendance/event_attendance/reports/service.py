from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AttendanceFilter
from ..attendance.service import AttendanceLedger
from ..common.datetime_utils import format_civil
from ..core.enums import Attribute
from ..core.exceptions import AuthorizationError, ValidationError
from ..participants.repository import UnitRepository


@dataclass(frozen=True)
class ExportData:
    dates: list[str]
    members: list[dict]
    units: list[dict]
    summary: dict[str, dict]

    def to_dict(self) -> dict:
        return {"dates": self.dates, "members": self.members, "units": self.units, "summary": self.summary}


@dataclass(frozen=True)
class StatusData:
    date: str
    units: list[dict]
    present: list[dict]
    absent: list[str]

    def to_dict(self) -> dict:
        return {"date": self.date, "units": self.units, "present": self.present, "absent": self.absent}


class ExportReportService:
    """Attendance reports.

    The spreadsheet export has one row per member per target unit; the status view
    summarises a single day per unit.
    """

    def __init__(self, ledger: AttendanceLedger, units: UnitRepository):
        self._ledger = ledger
        self._units = units

    def build_export(
        self,
        dates: Sequence[date],
        attribute: Optional[Attribute] = None,
        unit_id: Optional[str] = None,
    ) -> ExportData:
        days = sorted(set(dates)) or [self._ledger.today()]
        if len(days) > 31:
            raise ValidationError("at most 31 dates per export")

        unit_ids = (unit_id,) if unit_id else None
        marks = self._ledger.get_attendance_by_date_range(days[0], days[-1])
        tz_name = self._ledger.tz_name

        members: list[dict] = []
        for row in self._units.list_member_rows(attribute=attribute, unit_ids=unit_ids):
            by_date = marks.get(row.participant_id, {})
            attendance = {}
            for d in days:
                mark = by_date.get(d)
                attendance[d.isoformat()] = (
                    {
                        "attended": True,
                        "check_in_timestamp": format_civil(mark.timestamp, tz_name) if mark.timestamp else None,
                        "method": mark.method.value,
                    }
                    if mark
                    else {"attended": False, "check_in_timestamp": None, "method": None}
                )
            members.append(
                {
                    "participant_id": row.participant_id,
                    "display_name": row.display_name or "",
                    "nickname": row.nickname or "",
                    "unit_id": row.unit_id,
                    "unit_name": row.unit_name,
                    "attribute": Attribute(row.attribute).value,
                    "attendance": attendance,
                }
            )

        units = [
            {"unit_id": u.unit_id, "unit_name": u.name}
            for u in self._units.list_units(attendance_targets_only=True)
            if unit_id is None or u.unit_id == unit_id
        ]

        summary: dict[str, dict] = {}
        for d in days:
            s = self._ledger.get_summary(AttendanceFilter(date=d, attribute=attribute, unit_ids=unit_ids))
            summary[d.isoformat()] = {"present": s.present, "absent": s.absent, "total": s.total}

        return ExportData(dates=[d.isoformat() for d in days], members=members, units=units, summary=summary)

    def build_status(
        self,
        day: Optional[date],
        scope: Optional[frozenset[str]],
        unit_id: Optional[str] = None,
    ) -> StatusData:
        """One day's attendance per target unit, limited to `scope` (None = all units)."""
        if scope is not None and not scope:
            raise AuthorizationError("no units to report on")
        if unit_id:
            if scope is not None and unit_id not in scope:
                raise AuthorizationError(f"unit {unit_id} is outside the reporting scope")
            unit_ids: Optional[tuple[str, ...]] = (unit_id,)
        else:
            unit_ids = tuple(sorted(scope)) if scope is not None else None

        day = day or self._ledger.today()
        tz_name = self._ledger.tz_name

        units = []
        for u in self._units.list_units(attendance_targets_only=True):
            if unit_ids is not None and u.unit_id not in unit_ids:
                continue
            s = self._ledger.get_summary(AttendanceFilter(date=day, unit_ids=(u.unit_id,)))
            units.append(
                {"unit_id": u.unit_id, "unit_name": u.name, "present": s.present, "absent": s.absent, "total": s.total}
            )

        flt = AttendanceFilter(date=day, unit_ids=unit_ids)
        present = [
            {
                "participant_id": p.record.participant_id,
                "display_name": (p.participant.display_name if p.participant else None) or "",
                "unit_id": p.record.unit_id,
                "method": p.record.method.value,
                "check_in_timestamp": format_civil(p.record.check_in_timestamp, tz_name),
            }
            for p in self._ledger.get_present_users(flt)
        ]
        absent = sorted(self._ledger.get_absent_user_ids(flt))

        return StatusData(date=day.isoformat(), units=units, present=present, absent=absent)
