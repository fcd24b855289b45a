"""Domain services for group synchronization.

Pure algorithms over the domain model: descendant resolution and
membership reconciliation.
"""

from groupsync.domain.services.descendants import (
    DescendantResolver,
    GetMembers,
    Resolution,
    ResolutionPolicy,
    resolve_descendants,
)
from groupsync.domain.services.reconciler import (
    ChangeDetector,
    MemberKey,
    Reconciliation,
    casefold_id,
    detect_updates,
    index_members,
    member_id,
    metadata_changed,
    reconcile,
)

__all__ = [
    "ChangeDetector",
    "DescendantResolver",
    "GetMembers",
    "MemberKey",
    "Reconciliation",
    "Resolution",
    "ResolutionPolicy",
    "casefold_id",
    "detect_updates",
    "index_members",
    "member_id",
    "metadata_changed",
    "reconcile",
    "resolve_descendants",
]
