"""Protocol for group sync application service observability.

Defines the interface for domain probes that capture application-level
events of group synchronization.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class GroupSyncProbe(Protocol):
    """Domain probe for group sync operations."""

    def sync_started(self, source_group_id: str, target_group_ids: list[str]) -> None:
        """Record that syncing a source group started."""
        ...

    def descendants_found(self, source_group_id: str, user_ids: list[str]) -> None:
        """Record the users resolved for a source group."""
        ...

    def target_user_missing(self, target_group_id: str, source_user_id: str) -> None:
        """Record that a source user has no counterpart and was skipped."""
        ...

    def members_reconciled(
        self,
        target_group_id: str,
        add: list[str],
        remove: list[str],
        update: list[str],
        persist_count: int,
    ) -> None:
        """Record the difference between current and desired members."""
        ...

    def members_written(
        self, target_group_id: str, member_count: int, dry_run: bool
    ) -> None:
        """Record that the desired members were written (or would have been)."""
        ...

    def group_synced(self, source_group_id: str, target_group_id: str) -> None:
        """Record that a target group was synced successfully."""
        ...

    def group_sync_failed(
        self, source_group_id: str, target_group_id: str, error: str
    ) -> None:
        """Record that syncing a target group failed."""
        ...

    def with_context(self, context: ObservationContext) -> GroupSyncProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultGroupSyncProbe:
    """Default implementation of GroupSyncProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultGroupSyncProbe:
        """Create a new probe with observation context bound."""
        return DefaultGroupSyncProbe(logger=self._logger, context=context)

    def sync_started(self, source_group_id: str, target_group_ids: list[str]) -> None:
        self._logger.info(
            "group_sync_started",
            source_group_id=source_group_id,
            target_group_ids=target_group_ids,
            **self._get_context_kwargs(),
        )

    def descendants_found(self, source_group_id: str, user_ids: list[str]) -> None:
        self._logger.debug(
            "group_descendants_found",
            source_group_id=source_group_id,
            user_count=len(user_ids),
            user_ids=user_ids,
            **self._get_context_kwargs(),
        )

    def target_user_missing(self, target_group_id: str, source_user_id: str) -> None:
        self._logger.warning(
            "target_user_missing",
            target_group_id=target_group_id,
            source_user_id=source_user_id,
            **self._get_context_kwargs(),
        )

    def members_reconciled(
        self,
        target_group_id: str,
        add: list[str],
        remove: list[str],
        update: list[str],
        persist_count: int,
    ) -> None:
        self._logger.info(
            "group_members_reconciled",
            target_group_id=target_group_id,
            add_member_ids=add,
            remove_member_ids=remove,
            update_member_ids=update,
            persist_count=persist_count,
            **self._get_context_kwargs(),
        )

    def members_written(
        self, target_group_id: str, member_count: int, dry_run: bool
    ) -> None:
        self._logger.info(
            "group_members_written",
            target_group_id=target_group_id,
            member_count=member_count,
            dry_run=dry_run,
            **self._get_context_kwargs(),
        )

    def group_synced(self, source_group_id: str, target_group_id: str) -> None:
        self._logger.info(
            "group_synced",
            source_group_id=source_group_id,
            target_group_id=target_group_id,
            **self._get_context_kwargs(),
        )

    def group_sync_failed(
        self, source_group_id: str, target_group_id: str, error: str
    ) -> None:
        self._logger.error(
            "group_sync_failed",
            source_group_id=source_group_id,
            target_group_id=target_group_id,
            error=error,
            **self._get_context_kwargs(),
        )
