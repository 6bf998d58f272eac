from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Attribute
from .strategies.base import PrimaryUnitStrategy
from .strategies.organizer_strategy import OrganizerUnitStrategy
from .strategies.participant_strategy import ParticipantUnitStrategy
from .strategies.staff_strategy import StaffUnitStrategy


@dataclass
class PrimaryUnitStrategyFactory:
    """Factory Pattern: choose the unit strategy for an attribute."""

    def for_attribute(self, attribute: Attribute | str) -> PrimaryUnitStrategy:
        try:
            attribute = Attribute(attribute)
        except ValueError:
            attribute = Attribute.PARTICIPANT

        if attribute == Attribute.STAFF:
            return StaffUnitStrategy()
        if attribute == Attribute.ORGANIZER:
            return OrganizerUnitStrategy()
        return ParticipantUnitStrategy()
