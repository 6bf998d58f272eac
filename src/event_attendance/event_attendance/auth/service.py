from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Attribute
from ..core.exceptions import AuthorizationError, InvalidTokenError
from ..participants.model import ExternalIdentity, Participant
from ..participants.service import ParticipantService
from ..tokens.session import SessionTokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignInResult:
    participant: Participant
    session_token: str


class AuthService:
    """Session handling once the identity provider has vouched for a person.

    The OAuth exchange itself lives outside this package and hands over an
    ExternalIdentity.
    """

    def __init__(self, sessions: SessionTokenCodec, participants: ParticipantService):
        self._sessions = sessions
        self._participants = participants

    @property
    def session_max_age(self) -> int:
        return self._sessions.max_age_seconds

    def sign_in(self, identity: ExternalIdentity, *, now: Optional[datetime] = None) -> SignInResult:
        participant = self._participants.register_login(identity, now=now)
        token = self._sessions.issue(participant.participant_id, now=now)
        logger.info("session issued for %s", participant.participant_id)
        return SignInResult(participant=participant, session_token=token)

    def authenticate(self, session_token: Optional[str], *, now: Optional[datetime] = None) -> Participant:
        verification = self._sessions.verify(session_token, now=now)
        if not verification.valid or not verification.subject_id:
            raise InvalidTokenError("invalid session")
        return self._participants.get_participant(verification.subject_id)

    def require_staff(self, participant: Participant) -> Participant:
        if participant.attribute != Attribute.STAFF:
            raise AuthorizationError("staff only")
        return participant
