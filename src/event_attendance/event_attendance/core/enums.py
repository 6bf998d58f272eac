from __future__ import annotations

from enum import Enum


class Attribute(str, Enum):
    """Role class of a participant. Higher priority wins when several roles apply."""

    PARTICIPANT = "participant"
    ORGANIZER = "organizer"
    STAFF = "staff"


class CheckInMethod(str, Enum):
    """How a check-in was recorded."""

    SCAN = "scan"
    MANUAL = "manual"


class ScanStatus(str, Enum):
    """Tagged result returned to the scanner."""

    OK = "ok"
    DUPLICATE = "duplicate"
    ERROR = "error"
