"""JSON snapshots of a group system.

A snapshot captures the groups, their direct members and the users of one
system. The CLI loads the source and target systems from snapshots into
InMemoryGroupReadWriter instances and writes the target back after a sync.

    {"groups": [
        {"id": "eng", "members": [{"user": "alice", "role": "admin"},
                                  {"group": "platform"}]},
        {"id": "platform", "members": [{"user": "bob"}]}
     ],
     "users": [{"id": "alice"}, {"id": "bob"}]}
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from groupsync.domain.exceptions import ConfigurationError
from groupsync.domain.services import MemberKey, ResolutionPolicy, member_id
from groupsync.domain.value_objects import Group, Member, User
from groupsync.infrastructure.config import MetadataFields
from groupsync.infrastructure.in_memory import InMemoryGroupReadWriter


class SnapshotMember(MetadataFields):
    """A direct member: a user reference or a subgroup reference."""

    user: str | None = Field(default=None, min_length=1, description="User ID")
    group: str | None = Field(default=None, min_length=1, description="Subgroup ID")

    @model_validator(mode="after")
    def validate_single_reference(self) -> SnapshotMember:
        """Validate that exactly one of user or group is set."""
        if (self.user is None) == (self.group is None):
            raise ValueError("member must reference exactly one of user or group")
        if self.group is not None and (self.role or self.access_level):
            raise ValueError(f"subgroup member {self.group} cannot carry metadata")
        return self

    def to_domain(self, users: dict[str, User]) -> Member:
        if self.group is not None:
            return Member.of_group(Group(id=self.group))
        assert self.user is not None
        known = users.get(self.user)
        return Member.of_user(
            User(
                id=self.user,
                metadata=self.to_metadata(),
                system=known.system if known is not None else None,
            )
        )

    @classmethod
    def from_domain(cls, member: Member) -> SnapshotMember:
        if member.group is not None:
            return cls(group=member.group.id)
        return cls(user=member.id, **cls.fields_from_metadata(member.metadata))


class SnapshotGroup(BaseModel):
    """A group and its direct members."""

    id: str = Field(..., min_length=1, description="Group ID")
    members: list[SnapshotMember] = Field(default_factory=list)


class SnapshotUser(BaseModel):
    """A user known to the system."""

    id: str = Field(..., min_length=1, description="User ID")
    system: str | None = Field(default=None, description="System the user lives in")

    def to_domain(self) -> User:
        return User(id=self.id, system=self.system)


class Snapshot(BaseModel):
    """Contents of a snapshot file."""

    groups: list[SnapshotGroup] = Field(default_factory=list)
    users: list[SnapshotUser] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> Snapshot:
        """Validate that group and user IDs are unique."""
        for kind, ids in (
            ("group", [group.id for group in self.groups]),
            ("user", [user.id for user in self.users]),
        ):
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            if duplicates:
                raise ValueError(f"duplicate {kind} IDs: {', '.join(duplicates)}")
        return self

    def to_read_writer(
        self,
        *,
        member_key: MemberKey = member_id,
        policy: ResolutionPolicy = ResolutionPolicy.STRICT,
    ) -> InMemoryGroupReadWriter:
        users = {user.id: user.to_domain() for user in self.users}
        return InMemoryGroupReadWriter(
            groups=[Group(id=group.id) for group in self.groups],
            members={
                group.id: [member.to_domain(users) for member in group.members]
                for group in self.groups
            },
            users=users.values(),
            member_key=member_key,
            policy=policy,
        )

    @classmethod
    def from_read_writer(cls, read_writer: InMemoryGroupReadWriter) -> Snapshot:
        members = read_writer.members_snapshot()
        return cls(
            groups=[
                SnapshotGroup(
                    id=group_id,
                    members=[
                        SnapshotMember.from_domain(member)
                        for member in members.get(group_id, [])
                    ],
                )
                for group_id in read_writer.group_ids()
            ],
            users=[
                SnapshotUser(id=user.id, system=user.system)
                for user in read_writer.users()
            ],
        )


def load_snapshot(
    path: Path,
    *,
    member_key: MemberKey = member_id,
    policy: ResolutionPolicy = ResolutionPolicy.STRICT,
) -> InMemoryGroupReadWriter:
    """Load a snapshot file into an in-memory group system.

    Raises:
        ConfigurationError: If the file cannot be read or is malformed
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"failed to read snapshot {path}: {e}") from e
    try:
        snapshot = Snapshot.model_validate_json(content)
    except ValidationError as e:
        raise ConfigurationError(f"failed to parse snapshot {path}: {e}") from e
    return snapshot.to_read_writer(member_key=member_key, policy=policy)


def save_snapshot(read_writer: InMemoryGroupReadWriter, path: Path) -> None:
    """Write an in-memory group system to a snapshot file."""
    snapshot = Snapshot.from_read_writer(read_writer)
    path.write_text(
        snapshot.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8"
    )
