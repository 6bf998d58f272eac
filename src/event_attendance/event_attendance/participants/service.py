from __future__ import annotations

import json
import logging
import zlib
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import as_utc, now_utc
from ..core.constants import UNIT_COLOR_PALETTE
from ..core.enums import Attribute
from ..core.exceptions import UnknownParticipantError, ValidationError
from ..resolution.attribute import AttributeConfig, collect_role_ids, determine_attribute, load_attribute_config
from ..resolution.resolver import report_scope_unit_ids, role_unit_table
from ..settings.repository import SystemConfigRepository
from ..tokens.ticket import TicketTokenCodec, is_signed_ticket_format, placeholder_ticket
from .model import ExternalIdentity, MembershipInfo, MemberSnapshot, Participant, Unit
from .repository import ParticipantRepository, UnitRepository

logger = logging.getLogger(__name__)


def default_unit_color(unit_id: str) -> str:
    """Deterministic display colour picked from the palette by the id's last 4 hex digits."""
    try:
        index = int(unit_id[-4:], 16)
    except ValueError:
        index = zlib.crc32(unit_id.encode("utf-8"))
    return UNIT_COLOR_PALETTE[index % len(UNIT_COLOR_PALETTE)]


def is_attribute_stale(participant: Participant, memberships: Sequence[MembershipInfo]) -> bool:
    """True when membership data changed after the attribute was last computed."""
    if participant.attribute_updated_at is None:
        return True
    stamped = as_utc(participant.attribute_updated_at)
    return any(m.updated_at is not None and as_utc(m.updated_at) > stamped for m in memberships)


class ParticipantService:
    """Participants, their memberships and tickets.

    Membership sync (the chat-platform side) feeds `apply_member_snapshot` and
    `remove_membership`; the resolvers only ever read what it stored.
    """

    def __init__(
        self,
        participants: ParticipantRepository,
        units: UnitRepository,
        system_config: SystemConfigRepository,
        tickets: TicketTokenCodec,
        *,
        strict_config: bool = False,
    ):
        self._participants = participants
        self._units = units
        self._system_config = system_config
        self._tickets = tickets
        self._strict_config = strict_config

    def attribute_config(self) -> AttributeConfig:
        return load_attribute_config(self._system_config, strict=self._strict_config)

    def role_unit_table(self) -> dict[str, tuple[str, ...]]:
        return role_unit_table(self._units.list_role_unit_mappings())

    def get_participant(self, participant_id: str) -> Participant:
        participant = self._participants.get_by_id(participant_id)
        if not participant:
            raise UnknownParticipantError("participant not found")
        return participant

    def memberships(self, participant_id: str) -> Sequence[MembershipInfo]:
        return self._units.list_memberships(participant_id)

    def report_scope(self, participant_id: str) -> Optional[frozenset[str]]:
        """Units the participant may see attendance for; None means every unit."""
        participant = self.get_participant(participant_id)
        return report_scope_unit_ids(
            self._units.list_memberships(participant_id), participant.attribute, self.role_unit_table()
        )

    def refresh_attribute(
        self,
        participant_id: str,
        *,
        memberships: Optional[Sequence[MembershipInfo]] = None,
        now: Optional[datetime] = None,
    ) -> Attribute:
        """Recompute the attribute from every relevant membership and store it."""
        config = self.attribute_config()
        if memberships is None:
            memberships = self._units.list_memberships(participant_id)

        attribute = determine_attribute(collect_role_ids(memberships, config), config)
        self._participants.update_attribute(participant_id, attribute, updated_at=as_utc(now or now_utc()))
        return attribute

    def ensure_valid_ticket(self, participant_id: str) -> str:
        """Return a real signed ticket, replacing a placeholder if needed."""
        participant = self.get_participant(participant_id)
        if is_signed_ticket_format(participant.ticket_token):
            return participant.ticket_token

        token = self._tickets.issue(participant_id)
        self._participants.update_ticket(participant_id, token)
        logger.info("issued ticket for %s replacing placeholder", participant_id)
        return token

    def register_login(self, identity: ExternalIdentity, *, now: Optional[datetime] = None) -> Participant:
        """Create or refresh a participant after the identity provider vouched for them."""
        if not identity.participant_id:
            raise ValidationError("participant_id is required")

        participant = self._participants.get_by_id(identity.participant_id)
        if participant is None:
            participant = self._participants.create_participant(
                participant_id=identity.participant_id,
                display_name=identity.display_name,
                avatar_url=identity.avatar_url,
                attribute=Attribute.PARTICIPANT,
                ticket_token=self._tickets.issue(identity.participant_id, now=now),
            )
            logger.info("registered participant %s on first login", identity.participant_id)
        else:
            self._participants.update_profile(
                identity.participant_id,
                display_name=identity.display_name or participant.display_name,
                avatar_url=identity.avatar_url or participant.avatar_url,
            )
            self.ensure_valid_ticket(identity.participant_id)

        self.refresh_attribute(identity.participant_id, now=now)
        return self.get_participant(identity.participant_id)

    def apply_member_snapshot(self, snapshot: MemberSnapshot, *, now: Optional[datetime] = None) -> Optional[Participant]:
        """Upsert unit, participant and membership from one observed member."""
        if snapshot.is_bot:
            return None
        now = as_utc(now or now_utc())
        config = self.attribute_config()

        existing_unit = self._units.get_unit(snapshot.unit_id)
        self._units.upsert_unit(
            Unit(
                unit_id=snapshot.unit_id,
                name=snapshot.unit_name,
                icon_url=snapshot.unit_icon_url,
                color=existing_unit.color if existing_unit else default_unit_color(snapshot.unit_id),
                is_attendance_target=existing_unit.is_attendance_target if existing_unit else True,
                is_operations_unit=(existing_unit is not None and existing_unit.is_operations_unit)
                or config.operations_unit_id == snapshot.unit_id,
            )
        )

        participant = self._participants.get_by_id(snapshot.participant_id)
        if participant is None:
            self._participants.create_participant(
                participant_id=snapshot.participant_id,
                display_name=snapshot.display_name,
                avatar_url=snapshot.avatar_url,
                attribute=Attribute.PARTICIPANT,
                ticket_token=placeholder_ticket(snapshot.participant_id, now=now),
            )
        elif snapshot.display_name or snapshot.avatar_url:
            self._participants.update_profile(
                snapshot.participant_id,
                display_name=snapshot.display_name or participant.display_name,
                avatar_url=snapshot.avatar_url or participant.avatar_url,
            )

        self._units.upsert_membership(
            participant_id=snapshot.participant_id,
            unit_id=snapshot.unit_id,
            nickname=snapshot.nickname,
            avatar_url=snapshot.avatar_url,
            role_ids=json.dumps(list(snapshot.role_ids)),
            updated_at=now,
        )

        self.refresh_attribute(snapshot.participant_id, now=now)
        return self.get_participant(snapshot.participant_id)

    def remove_membership(self, participant_id: str, unit_id: str, *, now: Optional[datetime] = None) -> bool:
        removed = self._units.delete_membership(participant_id, unit_id)
        if removed and self._participants.get_by_id(participant_id) is not None:
            self.refresh_attribute(participant_id, now=now)
        return removed
