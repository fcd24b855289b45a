"""Value objects for the group sync domain.

Users, groups and members are produced fresh by adapters on every read and
are immutable for the duration of one sync pass. ``attributes`` is an opaque,
adapter-owned payload: only the adapter that created a value may interpret it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from groupsync.domain.metadata import MappingMetadata


@dataclass(frozen=True)
class User:
    """A principal in some group system.

    Attributes:
        id: System-scoped identifier (login, email or numeric ID as string)
        attributes: Adapter-owned payload, never interpreted by the engine
        metadata: Attributes derived from how this user was reached
        system: Name of the system the user was read from, if known
    """

    id: str
    attributes: Any = field(default=None, compare=False)
    metadata: MappingMetadata | None = None
    system: str | None = None


@dataclass(frozen=True)
class Group:
    """A container of members in some group system."""

    id: str
    attributes: Any = field(default=None, compare=False)


@dataclass(frozen=True)
class Member:
    """A member of a group: exactly one of a User or a Group.

    Use the ``of_user`` and ``of_group`` factories. Accessing the wrong kind
    returns None rather than raising, so ``is_user``/``is_group`` serve as
    guards:

        if member.is_group:
            queue.append(member.group.id)
    """

    user: User | None = None
    group: Group | None = None

    def __post_init__(self) -> None:
        if (self.user is None) == (self.group is None):
            raise ValueError("Member must wrap exactly one of a user or a group")
        if not self.id:
            raise ValueError("Member ID must not be empty")

    @classmethod
    def of_user(cls, user: User) -> Member:
        """Wrap a user."""
        return cls(user=user)

    @classmethod
    def of_group(cls, group: Group) -> Member:
        """Wrap a group."""
        return cls(group=group)

    @property
    def id(self) -> str:
        """ID of the wrapped user or group."""
        if self.user is not None:
            return self.user.id
        assert self.group is not None
        return self.group.id

    @property
    def is_user(self) -> bool:
        return self.user is not None

    @property
    def is_group(self) -> bool:
        return self.group is not None

    @property
    def metadata(self) -> MappingMetadata | None:
        """Metadata of the wrapped user; groups carry none."""
        return self.user.metadata if self.user is not None else None


@dataclass(frozen=True)
class Mapping:
    """A mapped group ID with the system it lives in and combinable metadata.

    Mapping metadata is applied to every user synced through this mapping,
    e.g. "members of this source group are admins of that team".
    """

    group_id: str
    system: str | None = None
    metadata: MappingMetadata | None = None


def user_ids(users: list[User]) -> list[str]:
    """IDs of the given users, in order."""
    return [user.id for user in users]
