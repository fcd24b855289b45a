"""Protocol for batch sync observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ConcurrentSyncProbe(Protocol):
    """Domain probe for batches of independent group syncs."""

    def batch_started(self, id_count: int, worker_count: int) -> None:
        """Record that a batch started."""
        ...

    def duplicate_ids_skipped(self, duplicate_ids: list[str]) -> None:
        """Record IDs submitted more than once; each is synced a single time."""
        ...

    def item_failed(self, item_id: str, error: str) -> None:
        """Record that syncing one ID failed; the batch carries on."""
        ...

    def batch_completed(self, id_count: int, failed_ids: list[str]) -> None:
        """Record that every ID of a batch was attempted."""
        ...

    def with_context(self, context: ObservationContext) -> ConcurrentSyncProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConcurrentSyncProbe:
    """Default implementation of ConcurrentSyncProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultConcurrentSyncProbe:
        return DefaultConcurrentSyncProbe(logger=self._logger, context=context)

    def batch_started(self, id_count: int, worker_count: int) -> None:
        self._logger.info(
            "sync_batch_started",
            id_count=id_count,
            worker_count=worker_count,
            **self._get_context_kwargs(),
        )

    def duplicate_ids_skipped(self, duplicate_ids: list[str]) -> None:
        self._logger.warning(
            "sync_batch_duplicate_ids_skipped",
            duplicate_ids=duplicate_ids,
            **self._get_context_kwargs(),
        )

    def item_failed(self, item_id: str, error: str) -> None:
        self._logger.error(
            "sync_batch_item_failed",
            item_id=item_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def batch_completed(self, id_count: int, failed_ids: list[str]) -> None:
        log = self._logger.warning if failed_ids else self._logger.info
        log(
            "sync_batch_completed",
            id_count=id_count,
            failed_count=len(failed_ids),
            failed_ids=failed_ids,
            **self._get_context_kwargs(),
        )
