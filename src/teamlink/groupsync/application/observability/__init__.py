"""Domain-Oriented Observability for the group sync application layer.

Probes for application service operations following Domain-Oriented Observability patterns.
"""

from groupsync.application.observability.concurrent_sync_probe import (
    ConcurrentSyncProbe,
    DefaultConcurrentSyncProbe,
)
from groupsync.application.observability.group_sync_probe import (
    DefaultGroupSyncProbe,
    GroupSyncProbe,
)

__all__ = [
    "ConcurrentSyncProbe",
    "DefaultConcurrentSyncProbe",
    "GroupSyncProbe",
    "DefaultGroupSyncProbe",
]
