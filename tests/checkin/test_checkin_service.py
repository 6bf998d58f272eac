from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.event_attendance.event_attendance.core.enums import Attribute, CheckInMethod, ScanStatus

NOW = datetime(2025, 3, 1, 1, 0, tzinfo=timezone.utc)


def _setup_member(world, container, participant_id="u1", unit_id="g1", *roles):
    world.add_unit(unit_id)
    world.add_participant(participant_id)
    world.join(participant_id, unit_id, *roles)
    return container.participant_service.ensure_valid_ticket(participant_id)


def test_scan_then_rescan_is_duplicate(world, container):
    token = _setup_member(world, container)
    svc = container.checkin_service

    first = svc.check_in_with_token(token, now=NOW)
    second = svc.check_in_with_token(token, now=NOW + timedelta(minutes=1))

    assert first.status == ScanStatus.OK
    assert first.participant.primary_unit_id == "g1"
    assert second.status == ScanStatus.DUPLICATE
    assert second.existing_method == CheckInMethod.SCAN
    assert len(world.attendance.records) == 1


def test_manual_then_scan_reports_manual(world, container):
    token = _setup_member(world, container)
    svc = container.checkin_service

    assert svc.check_in_participant("u1", now=NOW).status == ScanStatus.OK
    outcome = svc.check_in_with_token(token, now=NOW)

    assert outcome.status == ScanStatus.DUPLICATE
    assert outcome.existing_method == CheckInMethod.MANUAL


def test_invalid_token_is_error_without_participant(world, container):
    token = _setup_member(world, container)
    tampered = token[:-1] + ("0" if token[-1] != "0" else "1")

    outcome = container.checkin_service.check_in_with_token(tampered, now=NOW)

    assert outcome.status == ScanStatus.ERROR
    assert outcome.participant is None
    assert not world.attendance.records


def test_valid_token_for_unknown_participant_is_error(container, world):
    token = container.ticket_codec.issue("ghost")

    outcome = container.checkin_service.check_in_with_token(token, now=NOW)

    assert outcome.status == ScanStatus.ERROR
    assert not world.attendance.records


def test_stale_attribute_is_refreshed_before_attribution(world, container):
    world.add_unit("ops", "Operations", target=False, operations=True)
    world.add_unit("g1")
    world.add_participant("u1", stamped=NOW - timedelta(days=1))
    world.join("u1", "g1")
    world.join("u1", "ops", "role-staff")
    token = container.participant_service.ensure_valid_ticket("u1")

    outcome = container.checkin_service.check_in_with_token(token, now=NOW)

    record = next(iter(world.attendance.records.values()))
    assert outcome.participant.attribute == Attribute.STAFF
    assert record.attribute == Attribute.STAFF
    assert record.unit_id == "ops"
    assert world.participants.get_by_id("u1").attribute == Attribute.STAFF


def test_view_lists_attendance_target_units(world, container):
    world.add_unit("ops", "Operations", target=False, operations=True)
    token = _setup_member(world, container)
    world.join("u1", "ops")

    outcome = container.checkin_service.check_in_with_token(token, now=NOW)
    body = outcome.to_dict()

    assert body["status"] == "ok"
    assert [u["unit_id"] for u in body["user"]["units"]] == ["g1"]
    assert body["user"]["primary_unit"] == {"unit_id": "g1", "unit_name": "G1"}


def test_unresolved_unit_still_checks_in(world, container):
    world.add_participant("u1")
    token = container.participant_service.ensure_valid_ticket("u1")

    outcome = container.checkin_service.check_in_with_token(token, now=NOW)

    assert outcome.status == ScanStatus.OK
    assert outcome.participant.primary_unit_id is None
    assert next(iter(world.attendance.records.values())).unit_id is None


def test_staff_in_one_unit_and_organizer_in_another_goes_to_operations(world, container):
    world.add_unit("ops", "Operations", target=False, operations=True)
    world.add_unit("a", "Unit A")
    world.add_unit("b", "Unit B")
    world.add_participant("u1", stamped=None)
    world.join("u1", "a", "role-staff")
    world.join("u1", "b", "role-org-a")
    world.join("u1", "ops")
    world.map_role("role-org-a", "b")
    token = container.participant_service.ensure_valid_ticket("u1")

    outcome = container.checkin_service.check_in_with_token(token, now=NOW)

    assert outcome.participant.attribute == Attribute.STAFF
    assert outcome.participant.primary_unit_id == "ops"
