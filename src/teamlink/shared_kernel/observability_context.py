"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ulid import ULID


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures run-scoped metadata that should be included with all
    instrumentation events, so events from one sync run can be correlated.

    Attributes:
        run_id: Unique identifier for the current sync run.
        source_system: Name of the source group system (if applicable).
        target_system: Name of the target group system (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(
            run_id="run-123",
            source_system="google_groups",
            target_system="github",
        )
        probe = DefaultGroupSyncProbe().with_context(context)
    """

    run_id: str | None = None
    source_system: str | None = None
    target_system: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_run(
        cls, source_system: str | None = None, target_system: str | None = None
    ) -> ObservationContext:
        """Create a context for a new sync run with a fresh ULID run ID."""
        return cls(
            run_id=str(ULID()),
            source_system=source_system,
            target_system=target_system,
        )

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.run_id is not None:
            result["run_id"] = self.run_id
        if self.source_system is not None:
            result["source_system"] = self.source_system
        if self.target_system is not None:
            result["target_system"] = self.target_system
        result.update(self.extra)
        return result

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return ObservationContext(
            run_id=self.run_id,
            source_system=self.source_system,
            target_system=self.target_system,
            extra={**self.extra, **kwargs},
        )
