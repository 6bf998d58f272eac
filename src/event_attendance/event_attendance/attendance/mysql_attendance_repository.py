from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import Attribute, CheckInMethod
from ..core.exceptions import DuplicateCheckInError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key_error
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, participant_id, check_in_date, check_in_timestamp, unit_id, attribute, method"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        participant_id=str(r["participant_id"]),
        check_in_date=r["check_in_date"],
        check_in_timestamp=r["check_in_timestamp"],
        unit_id=r.get("unit_id"),
        attribute=Attribute(r["attribute"]),
        method=CheckInMethod(r.get("method") or CheckInMethod.SCAN.value),
    )


def _filters(attribute: Optional[Attribute], unit_ids: Optional[Iterable[str]]) -> tuple[str, list]:
    sql = ""
    params: list = []
    if attribute is not None:
        sql += " AND attribute=%s"
        params.append(Attribute(attribute).value)
    if unit_ids is not None:
        unit_ids = list(unit_ids)
        if unit_ids:
            sql += f" AND unit_id IN ({in_clause(unit_ids)})"
            params.extend(unit_ids)
        else:
            sql += " AND 1=0"
    return sql, params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_participant_and_date(self, participant_id: str, check_in_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE participant_id=%s AND check_in_date=%s",
                (participant_id, check_in_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_checkin(
        self,
        *,
        participant_id: str,
        check_in_date: date,
        check_in_timestamp: datetime,
        unit_id: Optional[str],
        attribute: Attribute,
        method: CheckInMethod,
    ) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(participant_id, check_in_date, check_in_timestamp, unit_id, attribute, method)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (participant_id, check_in_date, check_in_timestamp, unit_id, attribute.value, method.value),
                )
                attendance_id = int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key_error(e):
                raise DuplicateCheckInError(f"{participant_id} already checked in on {check_in_date}") from e
            raise

        return AttendanceRecord(
            attendance_id=attendance_id,
            participant_id=participant_id,
            check_in_date=check_in_date,
            check_in_timestamp=check_in_timestamp,
            unit_id=unit_id,
            attribute=attribute,
            method=method,
        )

    def count(
        self,
        *,
        check_in_date: date,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> int:
        extra, params = _filters(attribute, unit_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS n FROM attendance_records WHERE check_in_date=%s{extra}",
                (check_in_date, *params),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def list_for_date(
        self,
        *,
        check_in_date: date,
        attribute: Optional[Attribute] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> Sequence[AttendanceRecord]:
        extra, params = _filters(attribute, unit_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE check_in_date=%s{extra}
                ORDER BY check_in_timestamp
                """,
                (check_in_date, *params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_between(self, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE check_in_date BETWEEN %s AND %s
                ORDER BY check_in_date, check_in_timestamp
                """,
                (start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]
