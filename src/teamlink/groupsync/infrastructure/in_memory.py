"""In-memory group system adapter.

A complete GroupReadWriter over plain dicts. It backs the JSON snapshot
format used by the CLI and serves as the reference adapter: its
``set_members`` applies only the difference computed by the reconciler and
records every change it makes.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from cachetools import TTLCache

from groupsync.domain.exceptions import (
    AdapterError,
    GroupNotFoundError,
    NotFoundError,
    UserNotFoundError,
)
from groupsync.domain.services import (
    MemberKey,
    ResolutionPolicy,
    member_id,
    metadata_changed,
    reconcile,
    resolve_descendants,
)
from groupsync.domain.value_objects import Group, Member, User
from groupsync.ports import GroupReader

T = TypeVar("T")


class ChangeAction(StrEnum):
    """Kind of change applied to a group's membership."""

    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"


@dataclass(frozen=True)
class MembershipChange:
    """A single membership change applied by ``set_members``."""

    group_id: str
    member_id: str
    action: ChangeAction


class InMemoryGroupReadWriter:
    """GroupReadWriter backed by in-memory dicts.

    Writes are serialized with an asyncio lock; reads return copies so that
    callers can never mutate the stored state.
    """

    def __init__(
        self,
        groups: Iterable[Group] = (),
        members: dict[str, list[Member]] | None = None,
        users: Iterable[User] = (),
        *,
        member_key: MemberKey = member_id,
        policy: ResolutionPolicy = ResolutionPolicy.STRICT,
    ):
        """Initialize the store.

        Args:
            groups: Groups of the system
            members: Direct members per group ID; groups without an entry
                have no members
            users: Users of the system
            member_key: Identity normalization used when applying writes
            policy: Reaction to unreadable subgroups in ``descendants``
        """
        self._groups = {group.id: group for group in groups}
        self._members = {group_id: [] for group_id in self._groups}
        for group_id, group_members in (members or {}).items():
            if group_id not in self._groups:
                self._groups[group_id] = Group(id=group_id)
            self._members[group_id] = list(group_members)
        self._users = {user.id: user for user in users}
        self._member_key = member_key
        self._policy = policy
        self._lock = asyncio.Lock()
        self.changes: list[MembershipChange] = []

    @property
    def member_key(self) -> MemberKey:
        return self._member_key

    def group_ids(self) -> list[str]:
        return sorted(self._groups)

    def users(self) -> list[User]:
        return [self._users[user_id] for user_id in sorted(self._users)]

    def members_snapshot(self) -> dict[str, list[Member]]:
        """Copy of the direct members of every group."""
        return {group_id: list(members) for group_id, members in self._members.items()}

    async def get_group(self, group_id: str) -> Group:
        try:
            return self._groups[group_id]
        except KeyError:
            raise GroupNotFoundError(f"group {group_id} not found") from None

    async def get_members(self, group_id: str) -> list[Member]:
        try:
            return list(self._members[group_id])
        except KeyError:
            raise GroupNotFoundError(f"group {group_id} not found") from None

    async def get_user(self, user_id: str) -> User:
        try:
            return self._users[user_id]
        except KeyError:
            raise UserNotFoundError(f"user {user_id} not found") from None

    async def descendants(self, group_id: str) -> list[User]:
        return await resolve_descendants(group_id, self.get_members, policy=self._policy)

    async def set_members(self, group_id: str, members: list[Member]) -> None:
        """Replace the members of a group, applying only the difference.

        Raises:
            GroupNotFoundError: If the group does not exist
        """
        async with self._lock:
            current = await self.get_members(group_id)
            reconciliation = reconcile(
                current, members, key=self._member_key, changed=metadata_changed
            )

            updated: list[Member] = []
            kept: set[str] = set()
            for member in current:
                key = self._member_key(member)
                if key in reconciliation.remove or key in kept:
                    continue
                kept.add(key)
                updated.append(reconciliation.persist[key])
            updated.extend(reconciliation.add.values())
            self._members[group_id] = updated

            for member in reconciliation.add.values():
                if member.user is not None:
                    self._users.setdefault(member.user.id, User(id=member.user.id))
                self.changes.append(MembershipChange(group_id, member.id, ChangeAction.ADD))
            for member in reconciliation.remove.values():
                self.changes.append(
                    MembershipChange(group_id, member.id, ChangeAction.REMOVE)
                )
            for member in reconciliation.update.values():
                self.changes.append(
                    MembershipChange(group_id, member.id, ChangeAction.UPDATE)
                )


class CachingGroupReader:
    """GroupReader decorator caching lookups of another reader.

    The caches belong to this instance, so several readers (per test, per
    tenant) never see each other's entries. Cache reads and writes never
    await, which keeps them safe for concurrent tasks on one event loop.
    Descendants are resolved through the cached ``get_members`` so a nested
    group shared by several parents is fetched once per TTL window.

    Failures of the wrapped reader other than NotFoundError are raised as
    AdapterError naming the entity; failed lookups are not cached.
    """

    def __init__(
        self,
        reader: GroupReader,
        ttl_seconds: float = 300.0,
        *,
        maxsize: int = 4096,
        policy: ResolutionPolicy = ResolutionPolicy.STRICT,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._reader = reader
        self._policy = policy
        self._groups: TTLCache[str, Group] = TTLCache(
            maxsize=maxsize, ttl=ttl_seconds, timer=clock
        )
        self._users: TTLCache[str, User] = TTLCache(
            maxsize=maxsize, ttl=ttl_seconds, timer=clock
        )
        self._members: TTLCache[str, list[Member]] = TTLCache(
            maxsize=maxsize, ttl=ttl_seconds, timer=clock
        )

    def clear(self) -> None:
        """Drop every cached entry."""
        self._groups.clear()
        self._users.clear()
        self._members.clear()

    async def get_group(self, group_id: str) -> Group:
        group = self._groups.get(group_id)
        if group is None:
            group = await _read(f"group {group_id}", self._reader.get_group(group_id))
            self._groups[group_id] = group
        return group

    async def get_members(self, group_id: str) -> list[Member]:
        members = self._members.get(group_id)
        if members is None:
            members = list(
                await _read(
                    f"members of group {group_id}", self._reader.get_members(group_id)
                )
            )
            self._members[group_id] = members
        return list(members)

    async def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            user = await _read(f"user {user_id}", self._reader.get_user(user_id))
            self._users[user_id] = user
        return user

    async def descendants(self, group_id: str) -> list[User]:
        return await resolve_descendants(group_id, self.get_members, policy=self._policy)


async def _read(entity: str, call: Awaitable[T]) -> T:
    try:
        return await call
    except (NotFoundError, AdapterError):
        raise
    except Exception as e:
        raise AdapterError(f"error reading {entity}: {e}") from e
