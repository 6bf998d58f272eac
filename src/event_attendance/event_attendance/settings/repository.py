from __future__ import annotations

from typing import Optional, Protocol


class SystemConfigRepository(Protocol):
    """Flat key -> string configuration (role-id lists and similar).

    Written by the setup tooling (`scripts/configure.py`, first seed in `scripts/init_db.py`),
    read on every attribute computation.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError
