from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Attribute
from ..participants.model import MembershipInfo, RoleUnitMapping
from .attribute import parse_role_ids
from .factory import PrimaryUnitStrategyFactory
from .strategies.base import PrimaryUnit, RoleUnitTable

_default_factory = PrimaryUnitStrategyFactory()


def role_unit_table(mappings: Iterable[RoleUnitMapping]) -> dict[str, tuple[str, ...]]:
    return {m.role_id: tuple(m.unit_ids) for m in mappings}


def resolve_primary_unit(
    memberships: Sequence[MembershipInfo],
    attribute: Attribute | str,
    mappings: Optional[RoleUnitTable] = None,
    *,
    factory: Optional[PrimaryUnitStrategyFactory] = None,
) -> PrimaryUnit:
    """Pick the single unit used for display, reporting and attendance attribution."""
    strategy = (factory or _default_factory).for_attribute(attribute)
    return strategy.resolve(memberships, mappings=mappings or {})


def report_scope_unit_ids(
    memberships: Sequence[MembershipInfo],
    attribute: Attribute | str,
    mappings: Optional[RoleUnitTable] = None,
) -> Optional[frozenset[str]]:
    """Units whose attendance a person may report on.

    None means unrestricted (staff). Organizers get their mapped units, or their own
    attendance-target units when no mapping applies. Participants get nothing.
    """
    if attribute == Attribute.STAFF:
        return None
    if attribute != Attribute.ORGANIZER:
        return frozenset()

    mappings = mappings or {}
    scoped: set[str] = set()
    for m in memberships:
        for role_id in parse_role_ids(m.role_ids):
            scoped.update(mappings.get(role_id, ()))
    if not scoped:
        scoped = {m.unit_id for m in memberships if m.is_attendance_target}
    return frozenset(scoped)
