from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..core.enums import Attribute
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Participant
from .repository import ParticipantRepository


def _to_participant(r: dict) -> Participant:
    return Participant(
        participant_id=str(r["participant_id"]),
        display_name=r.get("display_name"),
        avatar_url=r.get("avatar_url"),
        attribute=Attribute(r["attribute"]),
        ticket_token=r["ticket_token"],
        attribute_updated_at=r.get("attribute_updated_at"),
    )


class MySQLParticipantRepository(ParticipantRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, participant_id: str) -> Optional[Participant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT participant_id, display_name, avatar_url, attribute, ticket_token, attribute_updated_at
                FROM participants
                WHERE participant_id=%s
                """,
                (participant_id,),
            )
            r = fetchone(cur)
            return _to_participant(r) if r else None

    def create_participant(
        self,
        *,
        participant_id: str,
        display_name: Optional[str],
        avatar_url: Optional[str],
        attribute: Attribute,
        ticket_token: str,
    ) -> Participant:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO participants(participant_id, display_name, avatar_url, attribute, ticket_token)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (participant_id, display_name, avatar_url, attribute.value, ticket_token),
            )
        return Participant(
            participant_id=participant_id,
            display_name=display_name,
            avatar_url=avatar_url,
            attribute=attribute,
            ticket_token=ticket_token,
        )

    def update_profile(self, participant_id: str, *, display_name: Optional[str], avatar_url: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE participants SET display_name=%s, avatar_url=%s WHERE participant_id=%s",
                (display_name, avatar_url, participant_id),
            )
            return cur.rowcount > 0

    def update_attribute(self, participant_id: str, attribute: Attribute, *, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE participants SET attribute=%s, attribute_updated_at=%s WHERE participant_id=%s",
                (attribute.value, updated_at, participant_id),
            )
            return cur.rowcount > 0

    def update_ticket(self, participant_id: str, ticket_token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE participants SET ticket_token=%s WHERE participant_id=%s",
                (ticket_token, participant_id),
            )
            return cur.rowcount > 0

    def list_eligible_ids(
        self,
        *,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> set[str]:
        sql = """
            SELECT DISTINCT p.participant_id
            FROM participants p
            JOIN unit_memberships m ON m.participant_id = p.participant_id
            JOIN units u ON u.unit_id = m.unit_id
            WHERE u.is_attendance_target = 1
        """
        params: list = []
        if attribute is not None:
            sql += " AND p.attribute=%s"
            params.append(Attribute(attribute).value)
        if unit_ids is not None:
            unit_ids = list(unit_ids)
            if not unit_ids:
                return set()
            sql += f" AND m.unit_id IN ({in_clause(unit_ids)})"
            params.extend(unit_ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return {str(r["participant_id"]) for r in fetchall(cur)}
