"""Domain exceptions for the group sync bounded context.

Error taxonomy:
- NotFoundError: a mapping or entity does not exist. Recoverable for users
  (they are skipped), surfaced for groups.
- AdapterError: a backend call failed. Wrapped with the entity ID.
- AggregateError: several independent failures joined together. Its message
  keeps every underlying message so each failing group can be identified.
- ConfigurationError: malformed mapping or configuration files. Fatal at
  startup, never raised per sync.
"""

from __future__ import annotations

from collections.abc import Iterable


class NotFoundError(Exception):
    """Raised when a group, user or mapping does not exist."""

    pass


class GroupNotFoundError(NotFoundError):
    """Raised when a group does not exist or has no mapping."""

    pass


class UserNotFoundError(NotFoundError):
    """Raised when a user does not exist in a group system."""

    pass


class TargetUserIDNotFoundError(NotFoundError):
    """Raised when a source user has no counterpart in the target system.

    This is an expected condition on the hot path of every sync: the user is
    skipped and a warning is emitted, the group sync carries on.
    """

    pass


class AdapterError(Exception):
    """Raised when a call to a backend system fails."""

    pass


class UserMappingError(Exception):
    """Raised when a source user cannot be mapped for a reason other than absence."""

    pass


class DescendantResolutionError(Exception):
    """Raised when the members of a group in a nested structure cannot be read."""

    def __init__(self, group_id: str, cause: BaseException):
        super().__init__(f"error fetching group members: {group_id}: {cause}")
        self.group_id = group_id


class GroupSyncError(Exception):
    """Raised when synchronizing one group fails.

    The message always names the group so that a batch report identifies
    exactly which groups need attention.
    """

    pass


class ConfigurationError(Exception):
    """Raised when mapping or configuration input is malformed or incomplete."""

    pass


class AggregateError(Exception):
    """Several independent failures joined into one exception.

    ``str()`` lists the message of every underlying error, one per line,
    after the summary message.
    """

    def __init__(self, message: str, errors: Iterable[BaseException]):
        self.errors: tuple[BaseException, ...] = tuple(errors)
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        lines = [self.message]
        lines.extend(str(error) for error in self.errors)
        return "\n".join(lines)


def join_errors(
    errors: Iterable[BaseException], message: str = "multiple errors occurred"
) -> BaseException | None:
    """Join errors the way a batch reports them.

    Returns:
        None when there are no errors, the error itself when there is one,
        otherwise an AggregateError containing all of them
    """
    collected = list(errors)
    if not collected:
        return None
    if len(collected) == 1:
        return collected[0]
    return AggregateError(message, collected)
