"""Application services for the group sync bounded context."""

from groupsync.application.services.sync_service import GroupSyncService

__all__ = ["GroupSyncService"]
