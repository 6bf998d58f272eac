from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .auth.service import AuthService
from .checkin.service import CheckInService
from .core.constants import DEFAULT_CIVIL_TIMEZONE, DEFAULT_SESSION_DAYS
from .database.connection import DBConfig, DatabaseConnection
from .participants.mysql_participant_repository import MySQLParticipantRepository
from .participants.mysql_unit_repository import MySQLUnitRepository
from .participants.repository import ParticipantRepository, UnitRepository
from .participants.service import ParticipantService
from .ratelimit.limiter import RateLimiter
from .reports.service import ExportReportService
from .settings.mysql_system_config_repository import MySQLSystemConfigRepository
from .settings.repository import SystemConfigRepository
from .settings.service import SetupService
from .tokens.legacy import LegacyTokenWindow
from .tokens.session import SessionTokenCodec
from .tokens.ticket import TicketTokenCodec


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    participants_repo: ParticipantRepository
    units_repo: UnitRepository
    attendance_repo: AttendanceRepository
    system_config_repo: SystemConfigRepository

    ticket_codec: TicketTokenCodec
    session_codec: SessionTokenCodec
    rate_limiter: RateLimiter

    participant_service: ParticipantService
    auth_service: AuthService
    attendance_ledger: AttendanceLedger
    checkin_service: CheckInService
    export_service: ExportReportService
    setup_service: SetupService


def assemble(
    *,
    participants_repo: ParticipantRepository,
    units_repo: UnitRepository,
    attendance_repo: AttendanceRepository,
    system_config_repo: SystemConfigRepository,
    ticket_secret: str,
    session_secret: str,
    session_days: int = DEFAULT_SESSION_DAYS,
    tz_name: str = DEFAULT_CIVIL_TIMEZONE,
    legacy_cutoff: Optional[datetime] = None,
    strict_role_config: bool = False,
    rate_limiter: Optional[RateLimiter] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""
    legacy_window = LegacyTokenWindow(cutoff=legacy_cutoff)
    ticket_codec = TicketTokenCodec(ticket_secret, legacy_window=legacy_window)
    session_codec = SessionTokenCodec(session_secret, session_days=session_days, legacy_window=legacy_window)

    participant_service = ParticipantService(
        participants_repo,
        units_repo,
        system_config_repo,
        ticket_codec,
        strict_config=strict_role_config,
    )
    attendance_ledger = AttendanceLedger(attendance_repo, participants_repo, tz_name=tz_name)

    return Container(
        conn=conn,
        participants_repo=participants_repo,
        units_repo=units_repo,
        attendance_repo=attendance_repo,
        system_config_repo=system_config_repo,
        ticket_codec=ticket_codec,
        session_codec=session_codec,
        rate_limiter=rate_limiter or RateLimiter(),
        participant_service=participant_service,
        auth_service=AuthService(session_codec, participant_service),
        attendance_ledger=attendance_ledger,
        checkin_service=CheckInService(ticket_codec, participant_service, attendance_ledger),
        export_service=ExportReportService(attendance_ledger, units_repo),
        setup_service=SetupService(system_config_repo, units_repo),
    )


def build_container(
    *,
    db_config: dict,
    ticket_secret: str,
    session_secret: str,
    session_days: int = DEFAULT_SESSION_DAYS,
    tz_name: str = DEFAULT_CIVIL_TIMEZONE,
    legacy_cutoff: Optional[datetime] = None,
    strict_role_config: bool = False,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        participants_repo=MySQLParticipantRepository(conn),
        units_repo=MySQLUnitRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        system_config_repo=MySQLSystemConfigRepository(conn),
        ticket_secret=ticket_secret,
        session_secret=session_secret,
        session_days=session_days,
        tz_name=tz_name,
        legacy_cutoff=legacy_cutoff,
        strict_role_config=strict_role_config,
        conn=conn,
    )
