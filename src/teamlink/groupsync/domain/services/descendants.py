"""Transitive descendant resolution over nested group structures.

Source systems (Google Groups, GitHub teams, GitLab groups) allow groups to
contain other groups, including, directly or transitively, themselves. The
resolver flattens such a structure into the set of users reachable from one
group.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

from groupsync.domain.exceptions import AggregateError, DescendantResolutionError
from groupsync.domain.metadata import combine_metadata
from groupsync.domain.observability import (
    DefaultDescendantResolverProbe,
    DescendantResolverProbe,
)
from groupsync.domain.value_objects import Member, User

GetMembers = Callable[[str], Awaitable[list[Member]]]


class ResolutionPolicy(StrEnum):
    """How the resolver reacts to a group whose members cannot be read.

    STRICT aborts on the first failure. BEST_EFFORT keeps walking the rest of
    the structure and reports every failure at the end.
    """

    STRICT = "strict"
    BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class Resolution:
    """Outcome of a traversal.

    Attributes:
        users: Deduplicated users with merged metadata, sorted by ID
        errors: Failures of individual groups (only under BEST_EFFORT)
    """

    users: list[User]
    errors: list[DescendantResolutionError] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """Whether every reachable group was read successfully."""
        return not self.errors


class DescendantResolver:
    """Breadth-first resolver of the users transitively reachable from a group.

    Guarantees:
    - Terminates on cyclic structures: each group is read at most once
    - A user reached through several paths appears once, with the metadata
      of every path merged via ``combine_metadata``
    - The result does not depend on traversal order
    """

    def __init__(
        self,
        get_members: GetMembers,
        policy: ResolutionPolicy = ResolutionPolicy.STRICT,
        probe: DescendantResolverProbe | None = None,
    ):
        """Initialize the resolver.

        Args:
            get_members: Reads the direct members of a group, supplied by an adapter
            policy: Reaction to a group whose members cannot be read
            probe: Optional domain probe for observability
        """
        self._get_members = get_members
        self._policy = policy
        self._probe = probe or DefaultDescendantResolverProbe()

    async def resolve(self, group_id: str) -> Resolution:
        """Walk the member graph starting at ``group_id``.

        Raises:
            DescendantResolutionError: Under STRICT, when any group in the
                structure cannot be read
        """
        # Every ID in the queue has already been marked as seen.
        queue: deque[str] = deque([group_id])
        seen: set[str] = {group_id}
        users: dict[str, User] = {}
        errors: list[DescendantResolutionError] = []

        while queue:
            current_id = queue.popleft()
            try:
                members = await self._get_members(current_id)
            except Exception as e:
                self._probe.subgroup_fetch_failed(group_id, current_id, str(e))
                if self._policy is ResolutionPolicy.STRICT:
                    raise DescendantResolutionError(current_id, e) from e
                error = DescendantResolutionError(current_id, e)
                error.__cause__ = e
                errors.append(error)
                continue

            for member in members:
                if member.user is not None:
                    _merge_user(users, member.user)
                elif member.group is not None:
                    if member.group.id in seen:
                        self._probe.cycle_skipped(group_id, member.group.id)
                        continue
                    seen.add(member.group.id)
                    queue.append(member.group.id)

        self._probe.descendants_resolved(group_id, len(seen), len(users))
        return Resolution(
            users=[users[user_id] for user_id in sorted(users)],
            errors=errors,
        )

    async def descendants(self, group_id: str) -> list[User]:
        """Return the users transitively reachable from ``group_id``.

        Raises:
            DescendantResolutionError: Under STRICT, on the first failing group
            AggregateError: Under BEST_EFFORT, listing every failing group
        """
        resolution = await self.resolve(group_id)
        if resolution.errors:
            raise AggregateError(
                f"failed to resolve descendants of group {group_id}",
                resolution.errors,
            )
        return resolution.users


def _merge_user(users: dict[str, User], user: User) -> None:
    existing = users.get(user.id)
    if existing is None:
        users[user.id] = user
        return
    users[user.id] = User(
        id=user.id,
        attributes=user.attributes,
        metadata=combine_metadata(existing.metadata, user.metadata),
        system=user.system if user.system is not None else existing.system,
    )


async def resolve_descendants(
    group_id: str,
    get_members: GetMembers,
    *,
    policy: ResolutionPolicy = ResolutionPolicy.STRICT,
    probe: DescendantResolverProbe | None = None,
) -> list[User]:
    """Return the users transitively reachable from ``group_id``.

    Convenience wrapper for adapters implementing ``GroupReader.descendants``
    without any special logic for fetching descendants.
    """
    resolver = DescendantResolver(get_members, policy=policy, probe=probe)
    return await resolver.descendants(group_id)
