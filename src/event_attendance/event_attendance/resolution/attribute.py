"""Attribute resolution: who is staff, organizer or plain participant.

The attribute is a property of the person, not of a single membership, so the role ids
of every relevant membership are collected first and the priority rule is applied once.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

from ..common.validators import parse_flag, split_id_list
from ..core.constants import (
    CONFIG_CROSS_UNIT_PROMOTION,
    CONFIG_OPERATIONS_UNIT_ID,
    CONFIG_ORGANIZER_ROLE_IDS,
    CONFIG_STAFF_ROLE_IDS,
)
from ..core.enums import Attribute
from ..core.exceptions import ConfigurationMissingError
from ..participants.model import MembershipInfo

logger = logging.getLogger(__name__)


class ConfigSource(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...


@dataclass(frozen=True)
class AttributeConfig:
    staff_role_ids: frozenset[str] = frozenset()
    organizer_role_ids: frozenset[str] = frozenset()
    operations_unit_id: Optional[str] = None
    cross_unit_promotion: bool = True


def load_attribute_config(source: ConfigSource, *, strict: bool = False) -> AttributeConfig:
    config = AttributeConfig(
        staff_role_ids=frozenset(split_id_list(source.get(CONFIG_STAFF_ROLE_IDS))),
        organizer_role_ids=frozenset(split_id_list(source.get(CONFIG_ORGANIZER_ROLE_IDS))),
        operations_unit_id=(source.get(CONFIG_OPERATIONS_UNIT_ID) or "").strip() or None,
        cross_unit_promotion=parse_flag(source.get(CONFIG_CROSS_UNIT_PROMOTION), default=True),
    )
    if strict and not config.staff_role_ids and not config.organizer_role_ids:
        raise ConfigurationMissingError("staff_role_ids / organizer_role_ids are not configured")
    return config


def parse_role_ids(raw: Optional[str]) -> list[str]:
    """Decode a membership's JSON role list; malformed data degrades to no roles."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("malformed role list ignored")
        return []
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, (str, int)) and not isinstance(v, bool)]


def collect_role_ids(memberships: Sequence[MembershipInfo], config: AttributeConfig) -> list[str]:
    """Role ids that count towards the attribute, in membership order."""
    if config.cross_unit_promotion:
        relevant = memberships
    else:
        relevant = [
            m for m in memberships
            if m.is_operations_unit or (config.operations_unit_id and m.unit_id == config.operations_unit_id)
        ]

    out: list[str] = []
    for m in relevant:
        out.extend(parse_role_ids(m.role_ids))
    return out


def determine_attribute(role_ids: Iterable[str], config: AttributeConfig) -> Attribute:
    """Priority: staff > organizer > participant."""
    roles = set(role_ids)
    if roles & config.staff_role_ids:
        return Attribute.STAFF
    if roles & config.organizer_role_ids:
        return Attribute.ORGANIZER
    return Attribute.PARTICIPANT
