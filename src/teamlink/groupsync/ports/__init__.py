"""Ports for the group sync bounded context.

Protocols that group system adapters and identity mappers implement.
"""

from groupsync.ports.protocols import (
    GroupReader,
    GroupReadWriter,
    GroupWriter,
    KeyProvider,
    OneToManyGroupMapper,
    OrgTokenSource,
    UserMapper,
)

__all__ = [
    "GroupReader",
    "GroupReadWriter",
    "GroupWriter",
    "KeyProvider",
    "OneToManyGroupMapper",
    "OrgTokenSource",
    "UserMapper",
]
