from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import Attribute, CheckInMethod, ScanStatus


@dataclass(frozen=True)
class UnitView:
    unit_id: str
    unit_name: str
    icon_url: Optional[str]
    color: Optional[str]
    nickname: Optional[str]


@dataclass(frozen=True)
class ParticipantView:
    """Denormalized participant shown on the scanner after a check-in."""

    participant_id: str
    display_name: Optional[str]
    avatar_url: Optional[str]
    attribute: Attribute
    primary_unit_id: Optional[str]
    primary_unit_name: str
    units: tuple[UnitView, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "participant_id": self.participant_id,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "attribute": self.attribute.value,
            "primary_unit": {"unit_id": self.primary_unit_id, "unit_name": self.primary_unit_name},
            "units": [
                {
                    "unit_id": u.unit_id,
                    "unit_name": u.unit_name,
                    "icon_url": u.icon_url,
                    "color": u.color,
                    "nickname": u.nickname,
                }
                for u in self.units
            ],
        }


@dataclass(frozen=True)
class ScanOutcome:
    status: ScanStatus
    message: str
    participant: Optional[ParticipantView] = None
    existing_method: Optional[CheckInMethod] = None

    def to_dict(self) -> dict:
        out: dict = {"status": self.status.value, "message": self.message}
        if self.participant is not None:
            out["user"] = self.participant.to_dict()
        if self.existing_method is not None:
            out["existing_method"] = self.existing_method.value
        return out
