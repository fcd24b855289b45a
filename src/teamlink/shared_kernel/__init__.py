"""Shared kernel: concepts shared across bounded contexts."""

from shared_kernel.observability_context import ObservationContext

__all__ = ["ObservationContext"]
