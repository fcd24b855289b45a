"""Domain-Oriented Observability for the group sync domain layer."""

from groupsync.domain.observability.descendant_probe import (
    DefaultDescendantResolverProbe,
    DescendantResolverProbe,
)

__all__ = [
    "DescendantResolverProbe",
    "DefaultDescendantResolverProbe",
]
