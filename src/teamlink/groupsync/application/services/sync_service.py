"""Group sync application service.

Orchestrates the synchronization of source groups to target groups:
resolve the source descendants, map them to target users, reconcile with the
target's current members and write the desired set.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace

from groupsync.application.concurrency import concurrent_sync
from groupsync.application.observability import (
    ConcurrentSyncProbe,
    DefaultGroupSyncProbe,
    GroupSyncProbe,
)
from groupsync.domain.exceptions import (
    AggregateError,
    ConfigurationError,
    GroupSyncError,
    TargetUserIDNotFoundError,
    UserMappingError,
    join_errors,
)
from groupsync.domain.metadata import MappingMetadata, combine_metadata
from groupsync.domain.observability import DescendantResolverProbe
from groupsync.domain.services import (
    ChangeDetector,
    DescendantResolver,
    MemberKey,
    Reconciliation,
    ResolutionPolicy,
    member_id,
    reconcile,
)
from groupsync.domain.value_objects import Member, User, user_ids
from groupsync.ports import GroupReader, GroupReadWriter, OneToManyGroupMapper, UserMapper


class GroupSyncService:
    """Application service synchronizing source groups into a target system.

    Within one group's sync every step runs sequentially, since each step
    depends on the previous one. Parallelism only happens across groups, in
    ``sync_all`` and ``sync_all_targets``.

    Failure policy:
    - a source user without a target counterpart is skipped with a warning
    - any other user mapping failure aborts that target group's write, since
      writing an incomplete desired set would remove legitimate members
    - a failing target group never prevents its siblings from being synced
    """

    def __init__(
        self,
        source: GroupReader,
        target: GroupReadWriter,
        group_mapper: OneToManyGroupMapper,
        user_mapper: UserMapper,
        *,
        inverse_group_mapper: OneToManyGroupMapper | None = None,
        member_key: MemberKey = member_id,
        change_detector: ChangeDetector | None = None,
        policy: ResolutionPolicy = ResolutionPolicy.STRICT,
        dry_run: bool = False,
        max_workers: int | None = None,
        probe: GroupSyncProbe | None = None,
        batch_probe: ConcurrentSyncProbe | None = None,
        resolver_probe: DescendantResolverProbe | None = None,
    ):
        """Initialize GroupSyncService with dependencies.

        Args:
            source: Reader for the authoritative source system
            target: Reader and writer for the target system
            group_mapper: Maps source group IDs to target group IDs
            user_mapper: Maps source user IDs to target user IDs
            inverse_group_mapper: Maps target group IDs back to source group
                IDs; required by ``sync_target`` and ``sync_all_targets``
            member_key: Identity normalization of the target system
            change_detector: Detects persisted members whose attributes changed
            policy: Reaction to unreadable subgroups during resolution
            dry_run: Reconcile and report without writing to the target
            max_workers: Size of the worker pool for batch syncs
            probe: Optional domain probe for observability
            batch_probe: Optional probe for batch syncs
            resolver_probe: Optional probe for descendant resolution
        """
        self._source = source
        self._target = target
        self._group_mapper = group_mapper
        self._inverse_group_mapper = inverse_group_mapper
        self._user_mapper = user_mapper
        self._member_key = member_key
        self._change_detector = change_detector
        self._policy = policy
        self._dry_run = dry_run
        self._max_workers = max_workers
        self._probe = probe or DefaultGroupSyncProbe()
        self._batch_probe = batch_probe
        self._resolver = DescendantResolver(
            source.get_members, policy=policy, probe=resolver_probe
        )

    def source_group_ids(self) -> list[str]:
        """IDs of every mapped source group."""
        return self._group_mapper.all_group_ids()

    def target_group_ids(self) -> list[str]:
        """IDs of every mapped target group.

        Raises:
            ConfigurationError: If no inverse group mapper was configured
        """
        return self._require_inverse_mapper().all_group_ids()

    def source_group_ids_of(self, target_group_id: str) -> list[str]:
        """IDs of the source groups mapped to a target group.

        Raises:
            ConfigurationError: If no inverse group mapper was configured
            GroupNotFoundError: If the target group has no mapping
        """
        return self._require_inverse_mapper().mapped_group_ids(target_group_id)

    async def sync_group(
        self, source_group_id: str, target_group_id: str
    ) -> Reconciliation:
        """Sync one source group into one target group.

        Args:
            source_group_id: Group to read the authoritative members from
            target_group_id: Group whose membership is replaced

        Returns:
            The reconciliation that was applied

        Raises:
            GroupSyncError: If any step fails, naming both group IDs
        """
        self._probe.sync_started(source_group_id, [target_group_id])
        try:
            users = await self._resolve(source_group_id)
        except Exception as e:
            self._probe.group_sync_failed(source_group_id, target_group_id, str(e))
            raise GroupSyncError(
                f"error getting source users for source group {source_group_id}: {e}"
            ) from e
        return await self._sync_target_group(source_group_id, target_group_id, users)

    async def sync(
        self,
        source_group_id: str,
        *,
        on_applied: Callable[[str, Reconciliation], None] | None = None,
    ) -> dict[str, Reconciliation]:
        """Sync a source group into every target group it is mapped to.

        The source descendants are resolved once and reused for each target.
        Each target is synced independently: one failing target does not
        stop the others.

        Args:
            source_group_id: Group to read the authoritative members from
            on_applied: Called with the target group ID and reconciliation
                as soon as each target is written, including when a sibling
                target later fails

        Returns:
            The applied reconciliation per target group ID

        Raises:
            GroupNotFoundError: If the source group has no mapping
            GroupSyncError: If the source group cannot be resolved or one
                target fails; AggregateError if several targets fail
        """
        mappings = self._group_mapper.mappings(source_group_id)
        self._probe.sync_started(
            source_group_id, [mapping.group_id for mapping in mappings]
        )

        try:
            users = await self._resolve(source_group_id)
        except Exception as e:
            for mapping in mappings:
                self._probe.group_sync_failed(source_group_id, mapping.group_id, str(e))
            raise GroupSyncError(
                f"error getting source users for source group {source_group_id}: {e}"
            ) from e

        results: dict[str, Reconciliation] = {}
        errors: list[Exception] = []
        for mapping in mappings:
            try:
                reconciliation = await self._sync_target_group(
                    source_group_id,
                    mapping.group_id,
                    _with_mapping_metadata(users, mapping.metadata),
                )
            except GroupSyncError as e:
                errors.append(e)
                continue
            results[mapping.group_id] = reconciliation
            if on_applied is not None:
                on_applied(mapping.group_id, reconciliation)

        error = join_errors(
            errors, f"failed to sync one or more target groups of {source_group_id}"
        )
        if error is not None:
            raise error
        return results

    async def sync_all(self, source_group_ids: Iterable[str] | None = None) -> None:
        """Sync source groups concurrently, every mapped one by default.

        Raises:
            AggregateError: Listing every source group that failed
        """
        await concurrent_sync(
            self._group_mapper.all_group_ids()
            if source_group_ids is None
            else source_group_ids,
            self.sync,
            max_workers=self._max_workers,
            probe=self._batch_probe,
        )

    async def sync_target(self, target_group_id: str) -> Reconciliation:
        """Sync a target group from the union of all source groups mapped to it.

        A user reached through several source groups receives the combined
        metadata of all of their mappings.

        Raises:
            ConfigurationError: If no inverse group mapper was configured
            GroupNotFoundError: If the target group has no mapping
            GroupSyncError: If a source group cannot be resolved or the
                target cannot be synced
        """
        source_mappings = self._require_inverse_mapper().mappings(target_group_id)
        source_ids = ",".join(mapping.group_id for mapping in source_mappings)
        self._probe.sync_started(source_ids, [target_group_id])

        merged: dict[str, User] = {}
        for mapping in source_mappings:
            try:
                users = await self._resolve(mapping.group_id)
            except Exception as e:
                self._probe.group_sync_failed(mapping.group_id, target_group_id, str(e))
                raise GroupSyncError(
                    f"error getting source users for source group {mapping.group_id} "
                    f"of target group {target_group_id}: {e}"
                ) from e
            for user in _with_mapping_metadata(users, mapping.metadata):
                existing = merged.get(user.id)
                if existing is not None:
                    user = replace(
                        user, metadata=combine_metadata(existing.metadata, user.metadata)
                    )
                merged[user.id] = user

        users = [merged[user_id] for user_id in sorted(merged)]
        return await self._sync_target_group(source_ids, target_group_id, users)

    async def sync_all_targets(
        self, target_group_ids: Iterable[str] | None = None
    ) -> None:
        """Sync target groups concurrently, every mapped one by default.

        Raises:
            ConfigurationError: If no inverse group mapper was configured
            AggregateError: Listing every target group that failed
        """
        inverse_group_mapper = self._require_inverse_mapper()
        await concurrent_sync(
            inverse_group_mapper.all_group_ids()
            if target_group_ids is None
            else target_group_ids,
            self.sync_target,
            max_workers=self._max_workers,
            probe=self._batch_probe,
        )

    def _require_inverse_mapper(self) -> OneToManyGroupMapper:
        if self._inverse_group_mapper is None:
            raise ConfigurationError(
                "syncing by target group requires an inverse group mapper"
            )
        return self._inverse_group_mapper

    async def _resolve(self, source_group_id: str) -> list[User]:
        users = await self._resolver.descendants(source_group_id)
        self._probe.descendants_found(source_group_id, user_ids(users))
        return users

    async def _sync_target_group(
        self, source_group_id: str, target_group_id: str, users: list[User]
    ) -> Reconciliation:
        try:
            desired = self._desired_members(target_group_id, users)
            current = await self._target.get_members(target_group_id)
            reconciliation = reconcile(
                current, desired, key=self._member_key, changed=self._change_detector
            )
            self._probe.members_reconciled(
                target_group_id,
                add=sorted(reconciliation.add),
                remove=sorted(reconciliation.remove),
                update=sorted(reconciliation.update),
                persist_count=len(reconciliation.persist),
            )
            if not self._dry_run:
                await self._target.set_members(target_group_id, desired)
            self._probe.members_written(target_group_id, len(desired), self._dry_run)
        except Exception as e:
            self._probe.group_sync_failed(source_group_id, target_group_id, str(e))
            raise GroupSyncError(
                f"error syncing source group {source_group_id} "
                f"to target group {target_group_id}: {e}"
            ) from e

        self._probe.group_synced(source_group_id, target_group_id)
        return reconciliation

    def _desired_members(self, target_group_id: str, users: list[User]) -> list[Member]:
        """Map source users to target members.

        Source users mapping to the same target user are merged.

        Raises:
            AggregateError: If any user fails to map for a reason other than
                having no counterpart
        """
        desired: dict[str, Member] = {}
        errors: list[Exception] = []
        for user in users:
            try:
                target_user = self._user_mapper.mapped_user(user)
            except TargetUserIDNotFoundError:
                self._probe.target_user_missing(target_group_id, user.id)
                continue
            except Exception as e:
                error = UserMappingError(
                    f"error mapping source user id {user.id} to target user id: {e}"
                )
                error.__cause__ = e
                errors.append(error)
                continue

            member = Member.of_user(target_user)
            key = self._member_key(member)
            existing = desired.get(key)
            if existing is not None:
                member = Member.of_user(
                    replace(
                        target_user,
                        metadata=combine_metadata(existing.metadata, target_user.metadata),
                    )
                )
            desired[key] = member

        if errors:
            raise AggregateError(
                f"error getting one or more target users for group {target_group_id}",
                errors,
            )
        return list(desired.values())


def _with_mapping_metadata(
    users: list[User], metadata: MappingMetadata | None
) -> list[User]:
    """Apply a mapping's metadata to every user synced through it."""
    if metadata is None:
        return users
    return [
        replace(user, metadata=combine_metadata(metadata, user.metadata))
        for user in users
    ]
