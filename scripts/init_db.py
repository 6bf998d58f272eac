from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.event_attendance.event_attendance.core.constants import (
    CONFIG_CROSS_UNIT_PROMOTION,
    CONFIG_OPERATIONS_UNIT_ID,
    CONFIG_ORGANIZER_ROLE_IDS,
    CONFIG_STAFF_ROLE_IDS,
)
from src.event_attendance.event_attendance.database.bootstrap import apply_schema, list_tables, seed_system_config

# Environment variables used for the first seed of the system_config table.
# Existing keys are left untouched; change them with scripts/configure.py.
_SEED_ENV = {
    CONFIG_STAFF_ROLE_IDS: "STAFF_ROLE_IDS",
    CONFIG_ORGANIZER_ROLE_IDS: "ORGANIZER_ROLE_IDS",
    CONFIG_OPERATIONS_UNIT_ID: "OPERATIONS_UNIT_ID",
    CONFIG_CROSS_UNIT_PROMOTION: "CROSS_UNIT_PROMOTION",
}


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = REPO_ROOT / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)

    values = {key: os.environ[env] for key, env in _SEED_ENV.items() if os.environ.get(env)}
    if values:
        seed_system_config(db_config, values)

    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)}, seeded config keys={sorted(values)})"
    )


if __name__ == "__main__":
    main()
