from __future__ import annotations

from typing import Sequence

from ...participants.model import MembershipInfo
from ..attribute import parse_role_ids
from .base import PrimaryUnit, PrimaryUnitStrategy, RoleUnitTable, first_attendance_target


class OrganizerUnitStrategy(PrimaryUnitStrategy):
    """Organizers represent the unit their organizer role is mapped to.

    Roles are evaluated in membership order, then role order; for each mapped role the
    target units are tried in their configured order. The first unit the organizer is
    actually a member of wins.
    """

    def resolve(self, memberships: Sequence[MembershipInfo], *, mappings: RoleUnitTable) -> PrimaryUnit:
        by_unit = {}
        for m in memberships:
            by_unit.setdefault(m.unit_id, m)

        for m in memberships:
            for role_id in parse_role_ids(m.role_ids):
                for unit_id in mappings.get(role_id, ()):
                    target = by_unit.get(unit_id)
                    if target is not None:
                        return PrimaryUnit.of(target)

        return first_attendance_target(memberships)
