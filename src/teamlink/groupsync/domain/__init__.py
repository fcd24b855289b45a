"""Domain layer for group synchronization.

Value objects, mapping metadata and the pure algorithms (descendant
resolution, reconciliation) that do not depend on any backend.
"""

from groupsync.domain.metadata import (
    AccessLevel,
    AccessLevelMetadata,
    MappingMetadata,
    Role,
    RoleMetadata,
    combine_metadata,
)
from groupsync.domain.value_objects import Group, Mapping, Member, User

__all__ = [
    "AccessLevel",
    "AccessLevelMetadata",
    "Group",
    "Mapping",
    "MappingMetadata",
    "Member",
    "Role",
    "RoleMetadata",
    "User",
    "combine_metadata",
]
