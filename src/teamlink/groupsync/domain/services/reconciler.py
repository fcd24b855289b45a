"""Current-vs-desired membership reconciliation.

A pure set difference over members keyed by a normalized identity. Adapters
supply the normalization (GitHub logins and team names are case-insensitive,
so GitHub adapters compare lowercased IDs) and, optionally, a change detector
for backends that can edit a member in place (e.g. a role change) instead of
removing and re-adding it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from groupsync.domain.value_objects import Member

MemberKey = Callable[[Member], str]
ChangeDetector = Callable[[Member, Member], bool]


def member_id(member: Member) -> str:
    """Identity key that compares member IDs as they are."""
    return member.id


def casefold_id(member: Member) -> str:
    """Identity key for case-insensitive systems."""
    return member.id.lower()


def metadata_changed(previous: Member, new: Member) -> bool:
    """Change detector that flags members whose metadata differs."""
    return previous.metadata != new.metadata


@dataclass(frozen=True)
class Reconciliation:
    """Partition of current and desired members.

    ``add``, ``remove`` and ``persist`` are pairwise disjoint and together
    cover every key of both inputs. ``update`` is the subset of ``persist``
    whose attributes changed; it is empty unless a change detector was used.
    """

    add: dict[str, Member] = field(default_factory=dict)
    remove: dict[str, Member] = field(default_factory=dict)
    persist: dict[str, Member] = field(default_factory=dict)
    update: dict[str, Member] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        """Whether applying this reconciliation would change anything."""
        return bool(self.add or self.remove or self.update)

    def desired(self) -> list[Member]:
        """The members the group should contain afterwards."""
        return [*self.persist.values(), *self.add.values()]


def index_members(members: Iterable[Member], key: MemberKey = member_id) -> dict[str, Member]:
    """Index members by key; a repeated key keeps the last member."""
    return {key(member): member for member in members}


def detect_updates(
    current: Mapping[str, Member],
    persist: Mapping[str, Member],
    changed: ChangeDetector = metadata_changed,
) -> dict[str, Member]:
    """Return the persisted members whose attributes changed.

    Args:
        current: Current members by key
        persist: Persisted members by key, values taken from the desired side
        changed: Detector comparing the previous and the new member

    Returns:
        The new members, by key, for which the detector returned True
    """
    return {
        key: member
        for key, member in persist.items()
        if key in current and changed(current[key], member)
    }


def reconcile(
    current: Iterable[Member],
    desired: Iterable[Member],
    key: MemberKey = member_id,
    changed: ChangeDetector | None = None,
) -> Reconciliation:
    """Partition current and desired members into add, remove and persist.

    Persisted members are taken from ``desired``, since desired metadata
    reflects the authoritative state.

    Args:
        current: Members the target group has now
        desired: Members the target group should have
        key: Identity normalization applied before comparing
        changed: Optional change detector filling ``update``

    Returns:
        The Reconciliation of both sides
    """
    current_by_key = index_members(current, key)
    desired_by_key = index_members(desired, key)

    add = {k: m for k, m in desired_by_key.items() if k not in current_by_key}
    remove = {k: m for k, m in current_by_key.items() if k not in desired_by_key}
    persist = {k: m for k, m in desired_by_key.items() if k in current_by_key}

    update: dict[str, Member] = {}
    if changed is not None:
        update = detect_updates(current_by_key, persist, changed)

    return Reconciliation(add=add, remove=remove, persist=persist, update=update)
