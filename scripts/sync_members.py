"""Apply membership snapshots exported by the chat-platform bot.

Input is JSON Lines, one member per line::

    {"event": "upsert", "participant_id": "...", "unit_id": "...", "unit_name": "...",
     "role_ids": ["..."], "display_name": "...", "nickname": "...", "avatar_url": "...",
     "unit_icon_url": "...", "is_bot": false}
    {"event": "remove", "participant_id": "...", "unit_id": "..."}

Usage: python scripts/sync_members.py members.jsonl
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

from src.event_attendance.event_attendance.container import build_container
from src.event_attendance.event_attendance.participants.model import MemberSnapshot


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path)
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        ticket_secret=settings.TICKET_SECRET,
        session_secret=settings.SESSION_SECRET,
        tz_name=settings.CIVIL_TIMEZONE,
        strict_role_config=bool(getattr(settings, "STRICT_ROLE_CONFIG", False)),
    )
    service = container.participant_service

    applied = removed = skipped = 0
    with args.path.open(encoding="utf-8") as fh:
        for line in fh:
            if not line.strip():
                continue
            item = json.loads(line)
            if item.get("event") == "remove":
                if service.remove_membership(str(item["participant_id"]), str(item["unit_id"])):
                    removed += 1
                continue

            snapshot = MemberSnapshot(
                participant_id=str(item["participant_id"]),
                unit_id=str(item["unit_id"]),
                unit_name=str(item.get("unit_name") or item["unit_id"]),
                role_ids=tuple(str(r) for r in item.get("role_ids") or ()),
                display_name=item.get("display_name"),
                nickname=item.get("nickname"),
                avatar_url=item.get("avatar_url"),
                unit_icon_url=item.get("unit_icon_url"),
                is_bot=bool(item.get("is_bot", False)),
            )
            if service.apply_member_snapshot(snapshot) is None:
                skipped += 1
            else:
                applied += 1

    print(f"OK: applied={applied} removed={removed} skipped={skipped}")


if __name__ == "__main__":
    main()
