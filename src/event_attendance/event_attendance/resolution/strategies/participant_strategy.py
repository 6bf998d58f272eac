from __future__ import annotations

import logging
from typing import Sequence

from ...participants.model import MembershipInfo
from .base import PrimaryUnit, PrimaryUnitStrategy, RoleUnitTable, first_attendance_target

logger = logging.getLogger(__name__)


class ParticipantUnitStrategy(PrimaryUnitStrategy):
    """Participants are expected to hold exactly one attendance-target membership."""

    def resolve(self, memberships: Sequence[MembershipInfo], *, mappings: RoleUnitTable) -> PrimaryUnit:
        targets = [m.unit_id for m in memberships if m.is_attendance_target]
        if len(targets) > 1:
            # Order-stable: the first membership wins. Membership sync should prevent this.
            logger.warning("participant holds %d attendance-target memberships: %s", len(targets), targets)
        return first_attendance_target(memberships)
