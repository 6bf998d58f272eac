from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..common.validators import split_id_list
from ..core.constants import (
    CONFIG_CROSS_UNIT_PROMOTION,
    CONFIG_OPERATIONS_UNIT_ID,
    CONFIG_ORGANIZER_ROLE_IDS,
    CONFIG_STAFF_ROLE_IDS,
)
from ..core.exceptions import ValidationError
from ..participants.model import RoleUnitMapping, Unit
from ..participants.repository import UnitRepository
from ..resolution.attribute import AttributeConfig, load_attribute_config
from .repository import SystemConfigRepository

logger = logging.getLogger(__name__)


def _join_ids(ids: Iterable[str]) -> str:
    seen: list[str] = []
    for i in ids:
        i = str(i).strip()
        if i and i not in seen:
            seen.append(i)
    return ",".join(seen)


@dataclass(frozen=True)
class SetupStatus:
    config: AttributeConfig
    units: Sequence[Unit]
    mappings: Sequence[RoleUnitMapping]

    def to_dict(self) -> dict:
        return {
            "staff_role_ids": sorted(self.config.staff_role_ids),
            "organizer_role_ids": sorted(self.config.organizer_role_ids),
            "operations_unit_id": self.config.operations_unit_id,
            "cross_unit_promotion": self.config.cross_unit_promotion,
            "units": [
                {
                    "unit_id": u.unit_id,
                    "name": u.name,
                    "is_attendance_target": u.is_attendance_target,
                    "is_operations_unit": u.is_operations_unit,
                }
                for u in self.units
            ],
            "role_unit_mappings": {m.role_id: list(m.unit_ids) for m in self.mappings},
        }


class SetupService:
    """Administrative configuration: role lists, unit flags and organizer role mappings.

    Units only exist once membership sync has seen them; flags of unknown units are
    rejected rather than created.
    """

    def __init__(self, system_config: SystemConfigRepository, units: UnitRepository):
        self._system_config = system_config
        self._units = units

    def _require_unit(self, unit_id: str) -> Unit:
        unit = self._units.get_unit(unit_id)
        if unit is None:
            raise ValidationError(f"unit {unit_id!r} has not been synced yet")
        return unit

    def set_attendance_target(self, unit_id: str, enable: bool) -> Unit:
        self._require_unit(unit_id)
        self._units.set_unit_flags(unit_id, is_attendance_target=enable)
        logger.info("unit %s attendance target=%s", unit_id, enable)
        return self._require_unit(unit_id)

    def set_operations_unit(self, unit_id: str, enable: bool) -> Unit:
        self._require_unit(unit_id)
        self._units.set_unit_flags(unit_id, is_operations_unit=enable)
        if not enable and (self._system_config.get(CONFIG_OPERATIONS_UNIT_ID) or "").strip() == unit_id:
            # Sync would otherwise flag the unit again from the configured id.
            self._system_config.set(CONFIG_OPERATIONS_UNIT_ID, "")
        logger.info("unit %s operations unit=%s", unit_id, enable)
        return self._require_unit(unit_id)

    def set_staff_roles(self, role_ids: Iterable[str]) -> str:
        """Replace the staff role list."""
        value = _join_ids(role_ids)
        if not value:
            raise ValidationError("at least one role id is required")
        self._system_config.set(CONFIG_STAFF_ROLE_IDS, value)
        logger.info("staff roles set: %s", value)
        return value

    def add_organizer_roles(self, role_ids: Iterable[str]) -> str:
        """Add to the organizer role list; existing entries are kept."""
        added = _join_ids(role_ids)
        if not added:
            raise ValidationError("at least one role id is required")
        current = split_id_list(self._system_config.get(CONFIG_ORGANIZER_ROLE_IDS))
        value = _join_ids([*current, *added.split(",")])
        self._system_config.set(CONFIG_ORGANIZER_ROLE_IDS, value)
        logger.info("organizer roles added: %s (now %s)", added, value)
        return value

    def set_cross_unit_promotion(self, enable: bool) -> None:
        self._system_config.set(CONFIG_CROSS_UNIT_PROMOTION, "true" if enable else "false")

    def map_role(self, role_id: str, unit_ids: Iterable[str]) -> RoleUnitMapping:
        """Point an organizer role at the units it runs."""
        role_id = str(role_id).strip()
        joined = _join_ids(unit_ids)
        if not role_id or not joined:
            raise ValidationError("role id and at least one unit id are required")
        mapping = RoleUnitMapping(role_id=role_id, unit_ids=tuple(joined.split(",")))
        self._units.upsert_role_unit_mapping(mapping)
        logger.info("role %s mapped to units %s", role_id, joined)
        return mapping

    def unmap_role(self, role_id: str) -> bool:
        return self._units.delete_role_unit_mapping(role_id)

    def status(self) -> SetupStatus:
        return SetupStatus(
            config=load_attribute_config(self._system_config),
            units=list(self._units.list_units()),
            mappings=list(self._units.list_role_unit_mappings()),
        )
