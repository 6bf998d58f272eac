from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from ...participants.model import MembershipInfo

# role id -> target unit ids, in configured order
RoleUnitTable = Mapping[str, Sequence[str]]


@dataclass(frozen=True)
class PrimaryUnit:
    unit_id: Optional[str]
    unit_name: str = ""

    @property
    def resolved(self) -> bool:
        return self.unit_id is not None

    @classmethod
    def unresolved(cls) -> "PrimaryUnit":
        return cls(unit_id=None, unit_name="")

    @classmethod
    def of(cls, membership: MembershipInfo) -> "PrimaryUnit":
        return cls(unit_id=membership.unit_id, unit_name=membership.unit_name or "")


def first_attendance_target(memberships: Sequence[MembershipInfo]) -> PrimaryUnit:
    for m in memberships:
        if m.is_attendance_target:
            return PrimaryUnit.of(m)
    return PrimaryUnit.unresolved()


class PrimaryUnitStrategy(ABC):
    """Strategy Pattern: decide the primary unit for one attribute."""

    @abstractmethod
    def resolve(self, memberships: Sequence[MembershipInfo], *, mappings: RoleUnitTable) -> PrimaryUnit:
        raise NotImplementedError
