"""Capability protocols (ports) for group synchronization.

Adapters for concrete group systems (GitHub, GitLab, Google Groups, SCIM)
implement these protocols. The engine only ever talks to adapters through
them, so every call here is a potential network round trip and the only
place a sync suspends.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from groupsync.domain.value_objects import Group, Mapping, Member, User


@runtime_checkable
class GroupReader(Protocol):
    """Read operations for a group system."""

    async def get_group(self, group_id: str) -> Group:
        """Retrieve the group with the given ID.

        Raises:
            GroupNotFoundError: If the group does not exist
        """
        ...

    async def get_members(self, group_id: str) -> list[Member]:
        """Retrieve the direct members (users and subgroups) of a group.

        Raises:
            GroupNotFoundError: If the group does not exist
        """
        ...

    async def get_user(self, user_id: str) -> User:
        """Retrieve the user with the given ID.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        ...

    async def descendants(self, group_id: str) -> list[User]:
        """Retrieve all users of a group, recursively through subgroups.

        Implementations without special logic delegate to
        ``resolve_descendants`` with their own ``get_members``.
        """
        ...


@runtime_checkable
class GroupWriter(Protocol):
    """Write operations for a group system."""

    async def set_members(self, group_id: str, members: list[Member]) -> None:
        """Replace the members of a group.

        Full-replacement semantics: afterwards the group's membership equals
        exactly the given members. Implementations compute and apply only
        the difference against their backend.
        """
        ...


@runtime_checkable
class GroupReadWriter(GroupReader, GroupWriter, Protocol):
    """Read and write operations for a group system."""


@runtime_checkable
class OneToManyGroupMapper(Protocol):
    """Maps one group ID to an ordered set of group IDs."""

    def all_group_ids(self) -> list[str]:
        """Return every mapped group ID (the key set), sorted."""
        ...

    def contains_group_id(self, group_id: str) -> bool:
        """Return whether the given group ID has a mapping."""
        ...

    def mapped_group_ids(self, group_id: str) -> list[str]:
        """Return the group IDs mapped to the given group ID.

        Raises:
            GroupNotFoundError: If the group ID has no mapping
        """
        ...

    def mappings(self, group_id: str) -> list[Mapping]:
        """Return the mappings (group ID, system, metadata) for a group ID.

        Raises:
            GroupNotFoundError: If the group ID has no mapping
        """
        ...


@runtime_checkable
class UserMapper(Protocol):
    """Maps a user ID in one system to the user ID in another."""

    def mapped_user_id(self, user_id: str) -> str:
        """Return the target user ID for a source user ID.

        Raises:
            TargetUserIDNotFoundError: If the user has no counterpart
        """
        ...

    def mapped_user(self, user: User) -> User:
        """Return the target user for a source user, keeping its metadata.

        Raises:
            TargetUserIDNotFoundError: If the user has no counterpart
        """
        ...


@runtime_checkable
class OrgTokenSource(Protocol):
    """Provides API tokens scoped to an organization."""

    async def token_for_org(self, org_id: str) -> str:
        """Return a token usable against the given organization."""
        ...


@runtime_checkable
class KeyProvider(Protocol):
    """Provides a private key, e.g. to mint app installation tokens."""

    async def key(self) -> bytes:
        """Return the private key bytes."""
        ...
