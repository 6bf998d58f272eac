from __future__ import annotations

import importlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.datetime_utils import as_utc
from .core.constants import DEFAULT_CIVIL_TIMEZONE
from .core.exceptions import ConfigurationMissingError
from .database.bootstrap import apply_schema, list_tables
from .ratelimit.sweeper import RateLimitSweeper

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .auth.controller import register as register_auth

logger = logging.getLogger(__name__)

_REQUIRED_SECRETS = ("SECRET_KEY", "TICKET_SECRET", "SESSION_SECRET")


def _legacy_cutoff(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return as_utc(datetime.fromisoformat(raw))
    except ValueError as e:
        raise ConfigurationMissingError(f"LEGACY_TOKENS_UNTIL is not an ISO datetime: {raw!r}") from e


def _civil_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationMissingError(f"CIVIL_TIMEZONE is not a known IANA zone: {name!r}") from e
    return name


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger(__package__).setLevel(level)


def create_app(container: Optional[Container] = None) -> Flask:
    """App factory. Tests pass a container built over in-memory repositories."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    missing = [name for name in _REQUIRED_SECRETS if not getattr(settings, name, "")]
    if missing:
        raise ConfigurationMissingError(f"missing required settings: {', '.join(missing)}")

    app.secret_key = getattr(settings, "SECRET_KEY")
    tz_name = _civil_timezone(getattr(settings, "CIVIL_TIMEZONE", DEFAULT_CIVIL_TIMEZONE))
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["EXPORT_API_KEY"] = getattr(settings, "EXPORT_API_KEY", "")
    app.config["SESSION_COOKIE_SECURE"] = bool(getattr(settings, "SESSION_COOKIE_SECURE", False))

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            ticket_secret=getattr(settings, "TICKET_SECRET"),
            session_secret=getattr(settings, "SESSION_SECRET"),
            session_days=int(getattr(settings, "SESSION_DAYS", 7)),
            tz_name=tz_name,
            legacy_cutoff=_legacy_cutoff(getattr(settings, "LEGACY_TOKENS_UNTIL", "")),
            strict_role_config=bool(getattr(settings, "STRICT_ROLE_CONFIG", False)),
        )

        sweeper = RateLimitSweeper(container.rate_limiter)
        sweeper.start()
        app.extensions["rate_limit_sweeper"] = sweeper

    app.extensions["container"] = container

    register_auth(app, container)
    register_attendance(app, container)

    return app
