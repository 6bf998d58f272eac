from __future__ import annotations

import pytest

from scripts.configure import build_parser, run
from src.event_attendance.event_attendance.core.constants import (
    CONFIG_CROSS_UNIT_PROMOTION,
    CONFIG_OPERATIONS_UNIT_ID,
    CONFIG_ORGANIZER_ROLE_IDS,
    CONFIG_STAFF_ROLE_IDS,
)
from src.event_attendance.event_attendance.core.enums import Attribute
from src.event_attendance.event_attendance.core.exceptions import ValidationError
from src.event_attendance.event_attendance.participants.model import MemberSnapshot


def test_staff_roles_are_replaced_not_seeded_once(container, world):
    setup = container.setup_service

    assert setup.set_staff_roles(["S1", " S2 ", "S1"]) == "S1,S2"
    assert setup.set_staff_roles(["S9"]) == "S9"
    assert world.config.values[CONFIG_STAFF_ROLE_IDS] == "S9"


def test_organizer_roles_accumulate_without_duplicates(container, world):
    value = container.setup_service.add_organizer_roles(["role-org-b", "role-org-c"])

    assert value == "role-org-a,role-org-b,role-org-c"
    assert world.config.values[CONFIG_ORGANIZER_ROLE_IDS] == value


def test_empty_role_lists_are_rejected(container):
    with pytest.raises(ValidationError):
        container.setup_service.set_staff_roles([" ", ""])
    with pytest.raises(ValidationError):
        container.setup_service.add_organizer_roles([])


def test_new_staff_role_takes_effect_on_next_refresh(container, world):
    world.add_unit("g1")
    world.add_participant("u1")
    world.join("u1", "g1", "role-new")

    container.setup_service.set_staff_roles(["role-new"])

    assert container.participant_service.refresh_attribute("u1") == Attribute.STAFF


def test_attendance_target_can_be_switched_both_ways(container, world):
    world.add_unit("g1")

    assert not container.setup_service.set_attendance_target("g1", False).is_attendance_target
    assert world.units.list_units(attendance_targets_only=True) == []
    assert container.setup_service.set_attendance_target("g1", True).is_attendance_target


def test_unknown_unit_flags_are_rejected(container):
    with pytest.raises(ValidationError):
        container.setup_service.set_attendance_target("nope", True)
    with pytest.raises(ValidationError):
        container.setup_service.set_operations_unit("nope", True)


def test_operations_flag_survives_membership_sync(container, world):
    world.add_unit("hq", "HQ")
    container.setup_service.set_operations_unit("hq", True)

    container.participant_service.apply_member_snapshot(
        MemberSnapshot(participant_id="u1", unit_id="hq", unit_name="HQ", role_ids=("role-staff",))
    )

    assert world.units.get_unit("hq").is_operations_unit


def test_disabling_configured_operations_unit_clears_the_key(container, world):
    world.add_unit("ops", "Operations", target=False, operations=True)

    unit = container.setup_service.set_operations_unit("ops", False)

    assert not unit.is_operations_unit
    assert world.config.values[CONFIG_OPERATIONS_UNIT_ID] == ""


def test_role_mapping_feeds_organizer_resolution(container, world):
    world.add_unit("a", "Alpha")
    world.add_unit("b", "Beta")
    world.add_participant("org", attribute=Attribute.ORGANIZER)
    world.join("org", "a", "role-org-a")
    world.join("org", "b")

    mapping = container.setup_service.map_role("role-org-a", ["b", " b", ""])

    assert mapping.unit_ids == ("b",)
    assert container.participant_service.role_unit_table() == {"role-org-a": ("b",)}
    assert container.participant_service.report_scope("org") == frozenset({"b"})

    assert container.setup_service.unmap_role("role-org-a")
    assert not container.setup_service.unmap_role("role-org-a")
    assert container.participant_service.role_unit_table() == {}


def test_map_role_needs_units(container):
    with pytest.raises(ValidationError):
        container.setup_service.map_role("role-org-a", [])


def test_status_reports_config_units_and_mappings(container, world):
    world.add_unit("g1", "Alpha")
    world.map_role("role-org-a", "g1")

    status = container.setup_service.status().to_dict()

    assert status["staff_role_ids"] == ["role-staff"]
    assert status["organizer_role_ids"] == ["role-org-a", "role-org-b"]
    assert status["operations_unit_id"] == "ops"
    assert status["cross_unit_promotion"] is True
    assert status["units"] == [
        {"unit_id": "g1", "name": "Alpha", "is_attendance_target": True, "is_operations_unit": False}
    ]
    assert status["role_unit_mappings"] == {"role-org-a": ["g1"]}


def test_configure_commands(container, world):
    world.add_unit("g1", "Alpha")
    parser = build_parser()

    assert run(container.setup_service, parser.parse_args(["target-unit", "g1", "--disable"])) == (
        "OK: Alpha (g1) attendance target=False"
    )
    assert run(container.setup_service, parser.parse_args(["staff-roles", "S1,S2"])) == "OK: staff roles=S1,S2"
    assert run(container.setup_service, parser.parse_args(["map-role", "R1", "g1"])) == "OK: role R1 -> g1"
    assert run(container.setup_service, parser.parse_args(["unmap-role", "R1"])) == "OK: role R1 unmapped"

    run(container.setup_service, parser.parse_args(["cross-unit-promotion", "--disable"]))
    assert world.config.values[CONFIG_CROSS_UNIT_PROMOTION] == "false"


def test_configure_toggle_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["target-unit", "g1"])
