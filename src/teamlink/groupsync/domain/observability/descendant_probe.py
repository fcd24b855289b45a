"""Observability probes for descendant resolution.

Domain probes following the Domain Oriented Observability pattern. The
resolver reports what it does through this probe instead of logging directly.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class DescendantResolverProbe(Protocol):
    """Protocol for descendant resolver observability probes."""

    def cycle_skipped(self, root_group_id: str, group_id: str) -> None:
        """Probe emitted when an already visited group is reached again.

        Args:
            root_group_id: The group the traversal started from
            group_id: The group that was reached a second time
        """
        ...

    def subgroup_fetch_failed(
        self, root_group_id: str, group_id: str, error: str
    ) -> None:
        """Probe emitted when the members of a group cannot be read."""
        ...

    def descendants_resolved(
        self, root_group_id: str, group_count: int, user_count: int
    ) -> None:
        """Probe emitted when a traversal completes.

        Args:
            root_group_id: The group the traversal started from
            group_count: Number of distinct groups visited
            user_count: Number of distinct users found
        """
        ...

    def with_context(self, context: ObservationContext) -> DescendantResolverProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultDescendantResolverProbe:
    """Default implementation of DescendantResolverProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultDescendantResolverProbe:
        """Create a new probe with observation context bound."""
        return DefaultDescendantResolverProbe(logger=self._logger, context=context)

    def cycle_skipped(self, root_group_id: str, group_id: str) -> None:
        self._logger.debug(
            "descendant_cycle_skipped",
            root_group_id=root_group_id,
            group_id=group_id,
            **self._get_context_kwargs(),
        )

    def subgroup_fetch_failed(
        self, root_group_id: str, group_id: str, error: str
    ) -> None:
        self._logger.warning(
            "descendant_subgroup_fetch_failed",
            root_group_id=root_group_id,
            group_id=group_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def descendants_resolved(
        self, root_group_id: str, group_count: int, user_count: int
    ) -> None:
        self._logger.debug(
            "descendants_resolved",
            root_group_id=root_group_id,
            group_count=group_count,
            user_count=user_count,
            **self._get_context_kwargs(),
        )
