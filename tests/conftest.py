from __future__ import annotations

import json
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Optional

import pytest

from src.event_attendance.event_attendance.attendance.model import AttendanceRecord
from src.event_attendance.event_attendance.container import assemble
from src.event_attendance.event_attendance.core.constants import (
    CONFIG_OPERATIONS_UNIT_ID,
    CONFIG_ORGANIZER_ROLE_IDS,
    CONFIG_STAFF_ROLE_IDS,
)
from src.event_attendance.event_attendance.core.enums import Attribute
from src.event_attendance.event_attendance.core.exceptions import DuplicateCheckInError
from src.event_attendance.event_attendance.participants.model import (
    MembershipInfo,
    Participant,
    RoleUnitMapping,
    Unit,
    UnitMembership,
    UnitMemberRow,
)
from src.event_attendance.event_attendance.ratelimit.limiter import RateLimiter

# 2025-03-01 10:00 in Tokyo.
NOW = datetime(2025, 3, 1, 1, 0, tzinfo=timezone.utc)


class FakeSystemConfigRepo:
    def __init__(self, values: Optional[dict] = None):
        self.values = dict(values or {})

    def get(self, key: str):
        return self.values.get(key)

    def set(self, key: str, value: str):
        self.values[key] = value


class FakeUnitRepo:
    def __init__(self):
        self.units: dict[str, Unit] = {}
        self.memberships: dict[tuple[str, str], UnitMembership] = {}
        self.mappings: dict[str, RoleUnitMapping] = {}
        self.participants: Optional["FakeParticipantRepo"] = None

    def get_unit(self, unit_id):
        return self.units.get(unit_id)

    def upsert_unit(self, unit):
        self.units[unit.unit_id] = unit

    def list_units(self, *, attendance_targets_only=False):
        units = sorted(self.units.values(), key=lambda u: u.name)
        return [u for u in units if u.is_attendance_target or not attendance_targets_only]

    def list_memberships(self, participant_id):
        out = []
        for (pid, unit_id), m in self.memberships.items():
            if pid != participant_id:
                continue
            u = self.units[unit_id]
            out.append(
                MembershipInfo(
                    unit_id=unit_id,
                    unit_name=u.name,
                    is_attendance_target=u.is_attendance_target,
                    is_operations_unit=u.is_operations_unit,
                    role_ids=m.role_ids,
                    nickname=m.nickname,
                    icon_url=u.icon_url,
                    color=u.color,
                    updated_at=m.updated_at,
                )
            )
        return out

    def upsert_membership(self, *, participant_id, unit_id, nickname, avatar_url, role_ids, updated_at):
        self.memberships[(participant_id, unit_id)] = UnitMembership(
            participant_id=participant_id,
            unit_id=unit_id,
            nickname=nickname,
            avatar_url=avatar_url,
            role_ids=role_ids,
            updated_at=updated_at,
        )

    def delete_membership(self, participant_id, unit_id):
        return self.memberships.pop((participant_id, unit_id), None) is not None

    def set_unit_flags(self, unit_id, *, is_attendance_target=None, is_operations_unit=None):
        unit = self.units.get(unit_id)
        if unit is None:
            return False
        if is_attendance_target is not None:
            unit = replace(unit, is_attendance_target=is_attendance_target)
        if is_operations_unit is not None:
            unit = replace(unit, is_operations_unit=is_operations_unit)
        self.units[unit_id] = unit
        return True

    def list_role_unit_mappings(self):
        return [self.mappings[k] for k in sorted(self.mappings)]

    def upsert_role_unit_mapping(self, mapping):
        self.mappings[mapping.role_id] = mapping

    def delete_role_unit_mapping(self, role_id):
        return self.mappings.pop(role_id, None) is not None

    def list_member_rows(self, *, attribute=None, unit_ids=None):
        rows = []
        for (pid, unit_id), m in self.memberships.items():
            u = self.units[unit_id]
            p = self.participants.rows[pid]
            if not u.is_attendance_target:
                continue
            if attribute is not None and p.attribute != attribute:
                continue
            if unit_ids is not None and unit_id not in unit_ids:
                continue
            rows.append(
                UnitMemberRow(
                    participant_id=pid,
                    display_name=p.display_name,
                    nickname=m.nickname,
                    unit_id=unit_id,
                    unit_name=u.name,
                    attribute=p.attribute,
                )
            )
        return sorted(rows, key=lambda r: (r.unit_name, r.display_name or ""))


class FakeParticipantRepo:
    def __init__(self, units: FakeUnitRepo):
        self.rows: dict[str, Participant] = {}
        self._units = units
        units.participants = self

    def get_by_id(self, participant_id):
        return self.rows.get(participant_id)

    def create_participant(self, *, participant_id, display_name, avatar_url, attribute, ticket_token):
        p = Participant(
            participant_id=participant_id,
            display_name=display_name,
            avatar_url=avatar_url,
            attribute=Attribute(attribute),
            ticket_token=ticket_token,
        )
        self.rows[participant_id] = p
        return p

    def update_profile(self, participant_id, *, display_name, avatar_url):
        if participant_id not in self.rows:
            return False
        self.rows[participant_id] = replace(self.rows[participant_id], display_name=display_name, avatar_url=avatar_url)
        return True

    def update_attribute(self, participant_id, attribute, *, updated_at):
        if participant_id not in self.rows:
            return False
        self.rows[participant_id] = replace(
            self.rows[participant_id], attribute=Attribute(attribute), attribute_updated_at=updated_at
        )
        return True

    def update_ticket(self, participant_id, ticket_token):
        if participant_id not in self.rows:
            return False
        self.rows[participant_id] = replace(self.rows[participant_id], ticket_token=ticket_token)
        return True

    def list_eligible_ids(self, *, attribute=None, unit_ids=None):
        out = set()
        for (pid, unit_id) in self._units.memberships:
            if not self._units.units[unit_id].is_attendance_target:
                continue
            if unit_ids is not None and unit_id not in unit_ids:
                continue
            if attribute is not None and self.rows[pid].attribute != attribute:
                continue
            out.add(pid)
        return out


class FakeAttendanceRepo:
    def __init__(self):
        self.records: dict[tuple[str, date], AttendanceRecord] = {}
        self.inserts = 0

    def get_for_participant_and_date(self, participant_id, check_in_date):
        return self.records.get((participant_id, check_in_date))

    def create_checkin(self, *, participant_id, check_in_date, check_in_timestamp, unit_id, attribute, method):
        key = (participant_id, check_in_date)
        if key in self.records:
            raise DuplicateCheckInError("duplicate")
        self.inserts += 1
        record = AttendanceRecord(
            attendance_id=self.inserts,
            participant_id=participant_id,
            check_in_date=check_in_date,
            check_in_timestamp=check_in_timestamp,
            unit_id=unit_id,
            attribute=attribute,
            method=method,
        )
        self.records[key] = record
        return record

    def _select(self, check_in_date, attribute, unit_ids):
        out = []
        for r in self.records.values():
            if r.check_in_date != check_in_date:
                continue
            if attribute is not None and r.attribute != attribute:
                continue
            if unit_ids is not None and r.unit_id not in unit_ids:
                continue
            out.append(r)
        return sorted(out, key=lambda r: r.check_in_timestamp)

    def count(self, *, check_in_date, attribute=None, unit_ids=None):
        return len(self._select(check_in_date, attribute, unit_ids))

    def list_for_date(self, *, check_in_date, attribute=None, unit_ids=None):
        return self._select(check_in_date, attribute, unit_ids)

    def list_between(self, *, start_date, end_date):
        return [r for r in self.records.values() if start_date <= r.check_in_date <= end_date]


class World:
    """In-memory storage plus helpers to populate it."""

    def __init__(self):
        self.units = FakeUnitRepo()
        self.participants = FakeParticipantRepo(self.units)
        self.attendance = FakeAttendanceRepo()
        self.config = FakeSystemConfigRepo(
            {
                CONFIG_STAFF_ROLE_IDS: "role-staff",
                CONFIG_ORGANIZER_ROLE_IDS: "role-org-a,role-org-b",
                CONFIG_OPERATIONS_UNIT_ID: "ops",
            }
        )

    def add_unit(self, unit_id, name=None, *, target=True, operations=False):
        self.units.upsert_unit(
            Unit(
                unit_id=unit_id,
                name=name or unit_id.upper(),
                icon_url=None,
                color="#3B82F6",
                is_attendance_target=target,
                is_operations_unit=operations,
            )
        )

    def add_participant(self, participant_id, *, attribute=Attribute.PARTICIPANT, ticket="", display_name=None, stamped=NOW):
        self.participants.create_participant(
            participant_id=participant_id,
            display_name=display_name or participant_id.title(),
            avatar_url=None,
            attribute=attribute,
            ticket_token=ticket or f"bot-sync-{participant_id}-0",
        )
        if stamped is not None:
            self.participants.update_attribute(participant_id, attribute, updated_at=stamped)

    def join(self, participant_id, unit_id, *roles, updated_at=NOW, nickname=None):
        self.units.upsert_membership(
            participant_id=participant_id,
            unit_id=unit_id,
            nickname=nickname,
            avatar_url=None,
            role_ids=json.dumps(list(roles)),
            updated_at=updated_at,
        )

    def map_role(self, role_id, *unit_ids):
        self.units.upsert_role_unit_mapping(RoleUnitMapping(role_id=role_id, unit_ids=tuple(unit_ids)))


@pytest.fixture()
def world():
    return World()


@pytest.fixture()
def container(world):
    return assemble(
        participants_repo=world.participants,
        units_repo=world.units,
        attendance_repo=world.attendance,
        system_config_repo=world.config,
        ticket_secret="test-ticket-secret",
        session_secret="test-session-secret",
        rate_limiter=RateLimiter(),
    )


@pytest.fixture()
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.event_attendance.event_attendance.main import create_app

    return create_app(container)


@pytest.fixture()
def client(app):
    return app.test_client()
