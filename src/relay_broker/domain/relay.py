"""Relay party roles."""

from enum import StrEnum


class Role(StrEnum):
    """Which side of a transaction a connection speaks for."""

    USER = "user"
    ADMIN = "admin"

    @property
    def opposite(self) -> "Role":
        return Role.ADMIN if self is Role.USER else Role.USER
