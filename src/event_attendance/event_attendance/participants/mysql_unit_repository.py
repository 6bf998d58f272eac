from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.validators import split_id_list
from ..core.enums import Attribute
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import MembershipInfo, RoleUnitMapping, Unit, UnitMemberRow
from .repository import UnitRepository


def _to_unit(r: dict) -> Unit:
    return Unit(
        unit_id=str(r["unit_id"]),
        name=r["name"],
        icon_url=r.get("icon_url"),
        color=r["color"],
        is_attendance_target=bool(r["is_attendance_target"]),
        is_operations_unit=bool(r["is_operations_unit"]),
    )


class MySQLUnitRepository(UnitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT unit_id, name, icon_url, color, is_attendance_target, is_operations_unit
                FROM units
                WHERE unit_id=%s
                """,
                (unit_id,),
            )
            r = fetchone(cur)
            return _to_unit(r) if r else None

    def upsert_unit(self, unit: Unit) -> None:
        # Colour and attendance flag are set once here; set_unit_flags changes the flag afterwards.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO units(unit_id, name, icon_url, color, is_attendance_target, is_operations_unit)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    name=VALUES(name),
                    icon_url=VALUES(icon_url),
                    is_operations_unit=VALUES(is_operations_unit)
                """,
                (
                    unit.unit_id,
                    unit.name,
                    unit.icon_url,
                    unit.color,
                    int(unit.is_attendance_target),
                    int(unit.is_operations_unit),
                ),
            )

    def list_units(self, *, attendance_targets_only: bool = False) -> Sequence[Unit]:
        sql = "SELECT unit_id, name, icon_url, color, is_attendance_target, is_operations_unit FROM units"
        if attendance_targets_only:
            sql += " WHERE is_attendance_target = 1"
        sql += " ORDER BY name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql)
            return [_to_unit(r) for r in fetchall(cur)]

    def list_memberships(self, participant_id: str) -> Sequence[MembershipInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.unit_id, u.name AS unit_name, u.is_attendance_target, u.is_operations_unit,
                       m.role_ids, m.nickname, u.icon_url, u.color, m.updated_at
                FROM unit_memberships m
                JOIN units u ON u.unit_id = m.unit_id
                WHERE m.participant_id=%s
                ORDER BY m.created_at, m.unit_id
                """,
                (participant_id,),
            )
            return [
                MembershipInfo(
                    unit_id=str(r["unit_id"]),
                    unit_name=r["unit_name"],
                    is_attendance_target=bool(r["is_attendance_target"]),
                    is_operations_unit=bool(r["is_operations_unit"]),
                    role_ids=r.get("role_ids") or "[]",
                    nickname=r.get("nickname"),
                    icon_url=r.get("icon_url"),
                    color=r.get("color"),
                    updated_at=r.get("updated_at"),
                )
                for r in fetchall(cur)
            ]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO unit_memberships(participant_id, unit_id, nickname, avatar_url, role_ids, updated_at, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    nickname=VALUES(nickname),
                    avatar_url=VALUES(avatar_url),
                    role_ids=VALUES(role_ids),
                    updated_at=VALUES(updated_at)
                """,
                (participant_id, unit_id, nickname, avatar_url, role_ids, updated_at, updated_at),
            )

    def delete_membership(self, participant_id: str, unit_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM unit_memberships WHERE participant_id=%s AND unit_id=%s",
                (participant_id, unit_id),
            )
            return cur.rowcount > 0

    def set_unit_flags(
        self,
        unit_id: str,
        *,
        is_attendance_target: Optional[bool] = None,
        is_operations_unit: Optional[bool] = None,
    ) -> bool:
        sets: list[str] = []
        params: list = []
        if is_attendance_target is not None:
            sets.append("is_attendance_target=%s")
            params.append(int(is_attendance_target))
        if is_operations_unit is not None:
            sets.append("is_operations_unit=%s")
            params.append(int(is_operations_unit))
        # rowcount is 0 for rows left unchanged, so existence is checked up front.
        if self.get_unit(unit_id) is None:
            return False
        if sets:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE units SET {', '.join(sets)} WHERE unit_id=%s", (*params, unit_id))
        return True

    def list_role_unit_mappings(self) -> Sequence[RoleUnitMapping]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role_id, unit_ids FROM role_unit_mappings ORDER BY role_id")
            return [
                RoleUnitMapping(role_id=str(r["role_id"]), unit_ids=tuple(split_id_list(r["unit_ids"])))
                for r in fetchall(cur)
            ]

    def upsert_role_unit_mapping(self, mapping: RoleUnitMapping) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO role_unit_mappings(role_id, unit_ids)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE unit_ids=VALUES(unit_ids)
                """,
                (mapping.role_id, ",".join(mapping.unit_ids)),
            )

    def delete_role_unit_mapping(self, role_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM role_unit_mappings WHERE role_id=%s", (role_id,))
            return cur.rowcount > 0

    def list_member_rows(
        self,
        *,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> Sequence[UnitMemberRow]:
        sql = """
            SELECT p.participant_id, p.display_name, m.nickname, m.unit_id, u.name AS unit_name, p.attribute
            FROM unit_memberships m
            JOIN participants p ON p.participant_id = m.participant_id
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
                return []
            sql += f" AND m.unit_id IN ({in_clause(unit_ids)})"
            params.extend(unit_ids)
        sql += " ORDER BY u.name, p.display_name"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                UnitMemberRow(
                    participant_id=str(r["participant_id"]),
                    display_name=r.get("display_name"),
                    nickname=r.get("nickname"),
                    unit_id=str(r["unit_id"]),
                    unit_name=r["unit_name"],
                    attribute=Attribute(r["attribute"]),
                )
                for r in fetchall(cur)
            ]
