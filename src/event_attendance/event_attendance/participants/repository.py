from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Attribute
from .model import MembershipInfo, Participant, RoleUnitMapping, Unit, UnitMemberRow


class ParticipantRepository(Protocol):
    """Repository interface for participants.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, participant_id: str) -> Optional[Participant]:
        raise NotImplementedError

    def create_participant(
        self,
        *,
        participant_id: str,
        display_name: Optional[str],
        avatar_url: Optional[str],
        attribute: Attribute,
        ticket_token: str,
    ) -> Participant:
        raise NotImplementedError

    def update_profile(self, participant_id: str, *, display_name: Optional[str], avatar_url: Optional[str]) -> bool:
        raise NotImplementedError

    def update_attribute(self, participant_id: str, attribute: Attribute, *, updated_at: datetime) -> bool:
        raise NotImplementedError

    def update_ticket(self, participant_id: str, ticket_token: str) -> bool:
        raise NotImplementedError

    def list_eligible_ids(
        self,
        *,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> set[str]:
        """Participants expected to attend: members of attendance-target units."""
        raise NotImplementedError


class UnitRepository(Protocol):
    def get_unit(self, unit_id: str) -> Optional[Unit]:
        raise NotImplementedError

    def upsert_unit(self, unit: Unit) -> None:
        raise NotImplementedError

    def list_units(self, *, attendance_targets_only: bool = False) -> Sequence[Unit]:
        raise NotImplementedError

    def list_memberships(self, participant_id: str) -> Sequence[MembershipInfo]:
        """Memberships joined with unit flags, oldest membership first."""
        raise NotImplementedError

    def upsert_membership(
        self,
        *,
        participant_id: str,
        unit_id: str,
        nickname: Optional[str],
        avatar_url: Optional[str],
        role_ids: str,
        updated_at: datetime,
    ) -> None:
        raise NotImplementedError

    def delete_membership(self, participant_id: str, unit_id: str) -> bool:
        raise NotImplementedError

    def set_unit_flags(
        self,
        unit_id: str,
        *,
        is_attendance_target: Optional[bool] = None,
        is_operations_unit: Optional[bool] = None,
    ) -> bool:
        """Change the flags that are given; False when the unit does not exist."""
        raise NotImplementedError

    def list_role_unit_mappings(self) -> Sequence[RoleUnitMapping]:
        raise NotImplementedError

    def upsert_role_unit_mapping(self, mapping: RoleUnitMapping) -> None:
        raise NotImplementedError

    def delete_role_unit_mapping(self, role_id: str) -> bool:
        raise NotImplementedError

    def list_member_rows(
        self,
        *,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> Sequence[UnitMemberRow]:
        raise NotImplementedError
