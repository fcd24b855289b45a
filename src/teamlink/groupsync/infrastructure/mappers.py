"""Static identity mappers backed by configuration data.

Both mappers are loaded once at startup and are read-only afterwards, so a
single instance is safe to share between concurrent sync workers without
locking. Reloading means constructing a new mapper.
"""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

from groupsync.domain.exceptions import (
    ConfigurationError,
    GroupNotFoundError,
    TargetUserIDNotFoundError,
)
from groupsync.domain.metadata import combine_metadata
from groupsync.domain.value_objects import Mapping, User


class StaticOneToManyGroupMapper:
    """Maps one group ID to an ordered set of group IDs.

    Values may be given as plain group IDs or as Mapping records carrying a
    system name and metadata. A target ID repeated for one key keeps its
    first position and system; the metadata of every occurrence is
    combined, so the highest privilege wins regardless of order.
    """

    def __init__(self, mapping: dict[str, Iterable[str | Mapping]]):
        table: dict[str, tuple[Mapping, ...]] = {}
        for group_id, targets in mapping.items():
            if not group_id:
                raise ConfigurationError("group mapping contains an empty group ID")
            entries: dict[str, Mapping] = {}
            for target in targets:
                entry = target if isinstance(target, Mapping) else Mapping(group_id=target)
                if not entry.group_id:
                    raise ConfigurationError(
                        f"group {group_id} is mapped to an empty group ID"
                    )
                previous = entries.get(entry.group_id)
                if previous is not None:
                    entry = Mapping(
                        group_id=entry.group_id,
                        system=previous.system or entry.system,
                        metadata=combine_metadata(previous.metadata, entry.metadata),
                    )
                entries[entry.group_id] = entry
            table[group_id] = tuple(entries.values())
        self._table = MappingProxyType(table)

    def all_group_ids(self) -> list[str]:
        return sorted(self._table)

    def contains_group_id(self, group_id: str) -> bool:
        return group_id in self._table

    def mapped_group_ids(self, group_id: str) -> list[str]:
        """Return a fresh list of the group IDs mapped to ``group_id``.

        Raises:
            GroupNotFoundError: If ``group_id`` has no mapping
        """
        return [entry.group_id for entry in self._entries(group_id)]

    def mappings(self, group_id: str) -> list[Mapping]:
        return list(self._entries(group_id))

    def inverse(self, system: str | None = None) -> StaticOneToManyGroupMapper:
        """Build the mapper in the opposite direction.

        Each inverted entry keeps the metadata of the original mapping.

        Args:
            system: System name recorded on the inverted entries
        """
        inverted: dict[str, list[Mapping]] = {}
        for group_id, entries in self._table.items():
            for entry in entries:
                inverted.setdefault(entry.group_id, []).append(
                    Mapping(group_id=group_id, system=system, metadata=entry.metadata)
                )
        return StaticOneToManyGroupMapper(inverted)

    def _entries(self, group_id: str) -> tuple[Mapping, ...]:
        entries = self._table.get(group_id)
        if entries is None:
            raise GroupNotFoundError(f"no mapping found for group ID: {group_id}")
        return entries


class StaticUserMapper:
    """Maps source user IDs to target user IDs one to one."""

    def __init__(self, mapping: dict[str, str]):
        targets: dict[str, str] = {}
        sources: dict[str, str] = {}
        for source_id, target_id in mapping.items():
            if not source_id or not target_id:
                raise ConfigurationError(
                    f"user mapping has an empty side: {source_id!r} -> {target_id!r}"
                )
            existing_source = sources.get(target_id)
            if existing_source is not None and existing_source != source_id:
                raise ConfigurationError(
                    f"target user {target_id} is mapped from multiple source users "
                    f"{existing_source},{source_id}"
                )
            targets[source_id] = target_id
            sources[target_id] = source_id
        self._targets = MappingProxyType(targets)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> StaticUserMapper:
        """Build a mapper from (source, target) pairs.

        Raises:
            ConfigurationError: If a source user is mapped to two targets
        """
        mapping: dict[str, str] = {}
        for source_id, target_id in pairs:
            existing = mapping.get(source_id)
            if existing is not None and existing != target_id:
                raise ConfigurationError(
                    f"source user {source_id} mapped to multiple target users "
                    f"{existing},{target_id}"
                )
            mapping[source_id] = target_id
        return cls(mapping)

    def __len__(self) -> int:
        return len(self._targets)

    def mapped_user_id(self, user_id: str) -> str:
        try:
            return self._targets[user_id]
        except KeyError:
            raise TargetUserIDNotFoundError(
                f"no target user found for source user {user_id}"
            ) from None

    def mapped_user(self, user: User) -> User:
        """Return the target user, keeping the source user's metadata.

        Attributes belong to the adapter that produced the source user and
        are not carried over.
        """
        return User(id=self.mapped_user_id(user.id), metadata=user.metadata)


class NoopUserMapper:
    """User mapper for systems that share user IDs; returns its input."""

    def mapped_user_id(self, user_id: str) -> str:
        return user_id

    def mapped_user(self, user: User) -> User:
        return user
