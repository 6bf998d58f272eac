from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import Attribute


@dataclass(frozen=True)
class Participant:
    """Domain entity: a person who can hold a ticket.

    Note: Plain data object (no DB access code).
    """

    participant_id: str
    display_name: Optional[str]
    avatar_url: Optional[str]
    attribute: Attribute
    ticket_token: str
    attribute_updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Unit:
    """An organizational unit ("guild")."""

    unit_id: str
    name: str
    icon_url: Optional[str]
    color: str
    is_attendance_target: bool = True
    is_operations_unit: bool = False


@dataclass(frozen=True)
class UnitMembership:
    participant_id: str
    unit_id: str
    nickname: Optional[str]
    avatar_url: Optional[str]
    role_ids: str
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class MembershipInfo:
    """Read-model: a membership joined with the flags of its unit."""

    unit_id: str
    unit_name: str
    is_attendance_target: bool
    is_operations_unit: bool
    role_ids: str
    nickname: Optional[str] = None
    icon_url: Optional[str] = None
    color: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class RoleUnitMapping:
    role_id: str
    unit_ids: tuple[str, ...]


@dataclass(frozen=True)
class ExternalIdentity:
    """Identity handed over by the login collaborator after the OAuth exchange."""

    participant_id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class MemberSnapshot:
    """One member of one unit, as observed by membership sync."""

    participant_id: str
    unit_id: str
    unit_name: str
    role_ids: tuple[str, ...] = field(default_factory=tuple)
    display_name: Optional[str] = None
    nickname: Optional[str] = None
    avatar_url: Optional[str] = None
    unit_icon_url: Optional[str] = None
    is_bot: bool = False


@dataclass(frozen=True)
class UnitMemberRow:
    """Read-model for exports: one participant in one attendance-target unit."""

    participant_id: str
    display_name: Optional[str]
    nickname: Optional[str]
    unit_id: str
    unit_name: str
    attribute: Attribute
