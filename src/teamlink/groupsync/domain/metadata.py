"""Mapping metadata for group synchronization.

Mapping metadata is a per-principal attribute bundle (a GitHub role, a GitLab
access level) that depends on *how* a user was reached. When the same user is
reachable through several groups, their metadata values are merged with
``combine`` instead of being overwritten.

Merge policy:
- ``combine`` is commutative and idempotent within one concrete type, so the
  order in which a group graph is traversed never changes the result
- combining with ``None`` returns the other value
- combining two different concrete types returns the receiver unchanged; this
  is a silent policy, not an error
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, runtime_checkable


@runtime_checkable
class MappingMetadata(Protocol):
    """Metadata that can be merged with metadata reached through another path."""

    def combine(self, other: MappingMetadata | None) -> MappingMetadata:
        """Merge this metadata with another value.

        Args:
            other: Metadata reached through a different path, or None

        Returns:
            The merged metadata. Implementations return ``self`` when
            ``other`` is None or of an incompatible type.
        """
        ...


def combine_metadata(
    first: MappingMetadata | None, second: MappingMetadata | None
) -> MappingMetadata | None:
    """Merge two optional metadata values.

    ``None`` has no ``combine`` method, so the None cases are handled here:
    ``combine_metadata(None, x) == x`` and ``combine_metadata(x, None) == x``.
    """
    if first is None:
        return second
    if second is None:
        return first
    return first.combine(second)


class Role(IntEnum):
    """GitHub membership roles, ordered by privilege."""

    UNSPECIFIED = 0
    MEMBER = 1
    ADMIN = 2

    def api_name(self) -> str:
        """Role name used by the membership APIs."""
        return "admin" if self is Role.ADMIN else "member"

    def invite_name(self) -> str:
        """Role name used by the invitation APIs."""
        return "admin" if self is Role.ADMIN else "direct_member"


_ROLE_NAMES = {
    "member": Role.MEMBER,
    "direct_member": Role.MEMBER,
    "admin": Role.ADMIN,
}


@dataclass(frozen=True)
class RoleMetadata:
    """Role granted to a user; merging keeps the highest role."""

    role: Role

    @classmethod
    def from_string(cls, value: str) -> RoleMetadata:
        """Parse a role name.

        Unknown names (GitHub also reports roles like ``hiring_manager``)
        fall back to MEMBER.
        """
        return cls(role=_ROLE_NAMES.get(value.lower(), Role.MEMBER))

    def combine(self, other: MappingMetadata | None) -> MappingMetadata:
        if not isinstance(other, RoleMetadata):
            return self
        return self if self.role >= other.role else other


class AccessLevel(IntEnum):
    """GitLab access levels, ordered by privilege."""

    NO_ACCESS = 0
    MINIMAL = 5
    GUEST = 10
    PLANNER = 15
    REPORTER = 20
    DEVELOPER = 30
    MAINTAINER = 40
    OWNER = 50


DEFAULT_ACCESS_LEVEL = AccessLevel.DEVELOPER


@dataclass(frozen=True)
class AccessLevelMetadata:
    """Access level granted to a user; merging keeps the highest level."""

    access_level: AccessLevel = DEFAULT_ACCESS_LEVEL

    @classmethod
    def from_string(cls, value: str) -> AccessLevelMetadata:
        """Parse an access level by name (``"maintainer"``) or number (``"40"``).

        Raises:
            ValueError: If the value names no known access level
        """
        if value.isdigit():
            return cls(access_level=AccessLevel(int(value)))
        try:
            return cls(access_level=AccessLevel[value.upper()])
        except KeyError as e:
            raise ValueError(f"Unknown access level: {value}") from e

    def combine(self, other: MappingMetadata | None) -> MappingMetadata:
        if not isinstance(other, AccessLevelMetadata):
            return self
        return self if self.access_level >= other.access_level else other
