from __future__ import annotations

import json

import pytest

from src.event_attendance.event_attendance.core.enums import Attribute
from src.event_attendance.event_attendance.core.exceptions import ConfigurationMissingError
from src.event_attendance.event_attendance.participants.model import MembershipInfo
from src.event_attendance.event_attendance.resolution.attribute import (
    AttributeConfig,
    collect_role_ids,
    determine_attribute,
    load_attribute_config,
    parse_role_ids,
)

CONFIG = AttributeConfig(
    staff_role_ids=frozenset({"S"}),
    organizer_role_ids=frozenset({"O"}),
    operations_unit_id="ops",
)


def _m(unit_id, *roles, ops=False):
    return MembershipInfo(
        unit_id=unit_id,
        unit_name=unit_id,
        is_attendance_target=not ops,
        is_operations_unit=ops,
        role_ids=json.dumps(list(roles)),
    )


@pytest.mark.parametrize(
    "roles, expected",
    [
        ({"S", "O"}, Attribute.STAFF),
        ({"O", "X"}, Attribute.ORGANIZER),
        ({"X"}, Attribute.PARTICIPANT),
        (set(), Attribute.PARTICIPANT),
    ],
)
def test_priority_staff_over_organizer_over_participant(roles, expected):
    assert determine_attribute(roles, CONFIG) == expected


def test_staff_role_in_any_unit_promotes_by_default():
    memberships = [_m("g1", "O"), _m("g2", "S")]
    assert determine_attribute(collect_role_ids(memberships, CONFIG), CONFIG) == Attribute.STAFF


def test_without_cross_unit_promotion_only_operations_unit_counts():
    config = AttributeConfig(
        staff_role_ids=frozenset({"S"}),
        organizer_role_ids=frozenset({"O"}),
        operations_unit_id="ops",
        cross_unit_promotion=False,
    )
    memberships = [_m("g1", "S"), _m("ops", "O", ops=True)]

    assert collect_role_ids(memberships, config) == ["O"]
    assert determine_attribute(collect_role_ids(memberships, config), config) == Attribute.ORGANIZER


@pytest.mark.parametrize("raw", [None, "", "not json", "{}", '"S"'])
def test_malformed_role_lists_mean_no_roles(raw):
    assert parse_role_ids(raw) == []


def test_load_config_parses_comma_lists():
    source = {"staff_role_ids": " S1, S2 ,", "organizer_role_ids": "O1", "operations_unit_id": "ops"}

    config = load_attribute_config(source)

    assert config.staff_role_ids == {"S1", "S2"}
    assert config.organizer_role_ids == {"O1"}
    assert config.operations_unit_id == "ops"
    assert config.cross_unit_promotion is True


def test_strict_mode_requires_role_lists():
    with pytest.raises(ConfigurationMissingError):
        load_attribute_config({}, strict=True)

    assert load_attribute_config({}).staff_role_ids == frozenset()
