"""Administrative setup: role lists, unit flags and organizer role mappings.

Usage:
    python scripts/configure.py status
    python scripts/configure.py target-unit <unit_id> --enable|--disable
    python scripts/configure.py operations-unit <unit_id> --enable|--disable
    python scripts/configure.py staff-roles <role_id,...>
    python scripts/configure.py organizer-roles <role_id,...>
    python scripts/configure.py cross-unit-promotion --enable|--disable
    python scripts/configure.py map-role <role_id> <unit_id,...>
    python scripts/configure.py unmap-role <role_id>
"""
from __future__ import annotations

import argparse
import importlib
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.event_attendance.event_attendance.common.validators import split_id_list
from src.event_attendance.event_attendance.container import build_container
from src.event_attendance.event_attendance.core.exceptions import DomainError
from src.event_attendance.event_attendance.settings.service import SetupService


def _add_toggle(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--enable", dest="enable", action="store_true")
    group.add_argument("--disable", dest="enable", action="store_false")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status")

    p = sub.add_parser("target-unit")
    p.add_argument("unit_id")
    _add_toggle(p)

    p = sub.add_parser("operations-unit")
    p.add_argument("unit_id")
    _add_toggle(p)

    p = sub.add_parser("staff-roles")
    p.add_argument("roles")

    p = sub.add_parser("organizer-roles")
    p.add_argument("roles")

    p = sub.add_parser("cross-unit-promotion")
    _add_toggle(p)

    p = sub.add_parser("map-role")
    p.add_argument("role_id")
    p.add_argument("unit_ids")

    p = sub.add_parser("unmap-role")
    p.add_argument("role_id")

    return parser


def run(service: SetupService, args: argparse.Namespace) -> str:
    """Apply one command and return the line to print."""
    if args.command == "status":
        return json.dumps(service.status().to_dict(), indent=2, ensure_ascii=False)
    if args.command == "target-unit":
        unit = service.set_attendance_target(args.unit_id, args.enable)
        return f"OK: {unit.name} ({unit.unit_id}) attendance target={unit.is_attendance_target}"
    if args.command == "operations-unit":
        unit = service.set_operations_unit(args.unit_id, args.enable)
        return f"OK: {unit.name} ({unit.unit_id}) operations unit={unit.is_operations_unit}"
    if args.command == "staff-roles":
        return f"OK: staff roles={service.set_staff_roles(split_id_list(args.roles))}"
    if args.command == "organizer-roles":
        return f"OK: organizer roles={service.add_organizer_roles(split_id_list(args.roles))}"
    if args.command == "cross-unit-promotion":
        service.set_cross_unit_promotion(args.enable)
        return f"OK: cross unit promotion={args.enable}"
    if args.command == "map-role":
        mapping = service.map_role(args.role_id, split_id_list(args.unit_ids))
        return f"OK: role {mapping.role_id} -> {','.join(mapping.unit_ids)}"
    if args.command == "unmap-role":
        removed = service.unmap_role(args.role_id)
        return f"OK: role {args.role_id} {'unmapped' if removed else 'had no mapping'}"
    raise ValueError(f"unknown command: {args.command}")


def main() -> None:
    args = build_parser().parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        ticket_secret=settings.TICKET_SECRET,
        session_secret=settings.SESSION_SECRET,
        tz_name=settings.CIVIL_TIMEZONE,
    )

    try:
        print(run(container.setup_service, args))
    except DomainError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
