from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..attendance.service import AttendanceLedger
from ..core.enums import CheckInMethod, ScanStatus
from ..core.exceptions import InvalidTokenError, UnknownParticipantError
from ..participants.model import Participant
from ..participants.service import ParticipantService, is_attribute_stale
from ..resolution.resolver import resolve_primary_unit
from ..tokens.ticket import TicketTokenCodec
from .model import ParticipantView, ScanOutcome, UnitView

logger = logging.getLogger(__name__)


class CheckInService:
    """Use case: turn a presented ticket into at most one attendance record today."""

    def __init__(self, tickets: TicketTokenCodec, participants: ParticipantService, ledger: AttendanceLedger):
        self._tickets = tickets
        self._participants = participants
        self._ledger = ledger

    def participant_from_token(self, token: str) -> Participant:
        verification = self._tickets.verify(token)
        if not verification.valid or not verification.subject_id:
            raise InvalidTokenError("invalid ticket")
        return self._participants.get_participant(verification.subject_id)

    def check_in_with_token(
        self,
        token: str,
        method: CheckInMethod = CheckInMethod.SCAN,
        *,
        now: Optional[datetime] = None,
    ) -> ScanOutcome:
        try:
            participant = self.participant_from_token(token)
        except InvalidTokenError:
            return ScanOutcome(status=ScanStatus.ERROR, message="Invalid token")
        except UnknownParticipantError:
            return ScanOutcome(status=ScanStatus.ERROR, message="Participant not found")
        return self._check_in(participant, method, now=now)

    def check_in_participant(
        self,
        participant_id: str,
        method: CheckInMethod = CheckInMethod.MANUAL,
        *,
        now: Optional[datetime] = None,
    ) -> ScanOutcome:
        try:
            participant = self._participants.get_participant(participant_id)
        except UnknownParticipantError:
            return ScanOutcome(status=ScanStatus.ERROR, message="Participant not found")
        return self._check_in(participant, method, now=now)

    def _check_in(self, participant: Participant, method: CheckInMethod, *, now: Optional[datetime]) -> ScanOutcome:
        memberships = self._participants.memberships(participant.participant_id)

        attribute = participant.attribute
        if is_attribute_stale(participant, memberships):
            attribute = self._participants.refresh_attribute(
                participant.participant_id, memberships=memberships, now=now
            )

        primary = resolve_primary_unit(memberships, attribute, self._participants.role_unit_table())
        result = self._ledger.check_in(participant.participant_id, primary.unit_id, attribute, method, now=now)

        view = ParticipantView(
            participant_id=participant.participant_id,
            display_name=participant.display_name,
            avatar_url=participant.avatar_url,
            attribute=attribute,
            primary_unit_id=primary.unit_id,
            primary_unit_name=primary.unit_name,
            units=tuple(
                UnitView(
                    unit_id=m.unit_id,
                    unit_name=m.unit_name,
                    icon_url=m.icon_url,
                    color=m.color,
                    nickname=m.nickname,
                )
                for m in memberships
                if m.is_attendance_target
            ),
        )

        if result.is_new_check_in:
            return ScanOutcome(status=ScanStatus.OK, message="Checked in", participant=view)
        return ScanOutcome(
            status=ScanStatus.DUPLICATE,
            message="Already checked in today",
            participant=view,
            existing_method=result.existing_method,
        )
