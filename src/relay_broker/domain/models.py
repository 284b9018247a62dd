"""Identity models for relay parties."""

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """A party that pays for a relay session."""

    id: int


@dataclass(frozen=True)
class Admin:
    """A party that serves a relay session."""

    id: int
