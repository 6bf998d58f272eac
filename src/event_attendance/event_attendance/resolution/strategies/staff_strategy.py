from __future__ import annotations

from typing import Sequence

from ...participants.model import MembershipInfo
from .base import PrimaryUnit, PrimaryUnitStrategy, RoleUnitTable, first_attendance_target


class StaffUnitStrategy(PrimaryUnitStrategy):
    """Staff belong to the operations unit when they are a member of it."""

    def resolve(self, memberships: Sequence[MembershipInfo], *, mappings: RoleUnitTable) -> PrimaryUnit:
        for m in memberships:
            if m.is_operations_unit:
                return PrimaryUnit.of(m)
        return first_attendance_target(memberships)
