"""Mapping file loaders.

Group and user mapping files are JSON documents validated with pydantic and
turned into the static identity mappers at process start. Any problem with a
file is a ConfigurationError: fatal at startup, never raised during a sync.

Group mapping file:

    {"mappings": [
        {"source_group_id": "eng@example.com", "target_group_id": "100:1"},
        {"source_group_id": "leads@example.com", "target_group_id": "100:1",
         "role": "admin"}
    ]}

User mapping file:

    {"mappings": [
        {"source_user_id": "alice@example.com", "target_user_id": "alice-gh"}
    ]}
"""

from __future__ import annotations

from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, Field, ValidationError, model_validator

from groupsync.domain.exceptions import ConfigurationError
from groupsync.domain.metadata import AccessLevelMetadata, MappingMetadata, RoleMetadata
from groupsync.domain.value_objects import Mapping
from groupsync.infrastructure.mappers import StaticOneToManyGroupMapper, StaticUserMapper

ModelT = TypeVar("ModelT", bound=BaseModel)


class MetadataFields(BaseModel):
    """Optional role or access level attached to a mapping or member."""

    role: str | None = Field(default=None, description="GitHub role (member, admin)")
    access_level: str | None = Field(
        default=None, description="GitLab access level name or number"
    )

    @model_validator(mode="after")
    def validate_single_metadata(self) -> MetadataFields:
        """Validate that at most one kind of metadata is given."""
        if self.role is not None and self.access_level is not None:
            raise ValueError("role and access_level are mutually exclusive")
        if self.access_level is not None:
            AccessLevelMetadata.from_string(self.access_level)
        return self

    @classmethod
    def fields_from_metadata(cls, metadata: MappingMetadata | None) -> dict[str, str]:
        """Field values representing domain metadata; empty for unknown kinds."""
        if isinstance(metadata, RoleMetadata):
            return {"role": metadata.role.api_name()}
        if isinstance(metadata, AccessLevelMetadata):
            return {"access_level": metadata.access_level.name.lower()}
        return {}

    def to_metadata(self) -> MappingMetadata | None:
        """Convert the fields to domain metadata, if any is set."""
        if self.role is not None:
            return RoleMetadata.from_string(self.role)
        if self.access_level is not None:
            return AccessLevelMetadata.from_string(self.access_level)
        return None


class GroupMappingEntry(MetadataFields):
    """One source group mapped to one target group."""

    source_group_id: str = Field(..., min_length=1, description="Source group ID")
    target_group_id: str = Field(..., min_length=1, description="Target group ID")
    source_system: str | None = Field(default=None, description="Source system name")
    target_system: str | None = Field(default=None, description="Target system name")


class GroupMappingFile(BaseModel):
    """Contents of a group mapping file."""

    mappings: list[GroupMappingEntry] = Field(default_factory=list)


class UserMappingEntry(BaseModel):
    """One source user mapped to one target user.

    Either side may be empty for users without a counterpart; such entries
    are skipped.
    """

    source_user_id: str = Field(default="", description="Source user ID")
    target_user_id: str = Field(default="", description="Target user ID")


class UserMappingFile(BaseModel):
    """Contents of a user mapping file."""

    mappings: list[UserMappingEntry] = Field(default_factory=list)


def _read_model(path: Path, model: type[ModelT]) -> ModelT:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"failed to read mapping file {path}: {e}") from e
    try:
        return model.model_validate_json(content)
    except ValidationError as e:
        raise ConfigurationError(f"failed to parse mapping file {path}: {e}") from e


def build_group_mappers(
    document: GroupMappingFile,
) -> tuple[StaticOneToManyGroupMapper, StaticOneToManyGroupMapper]:
    """Build the source-to-target mapper and its inverse.

    Returns:
        (source to target mapper, target to source mapper)
    """
    forward: dict[str, list[Mapping]] = {}
    inverse: dict[str, list[Mapping]] = {}
    for entry in document.mappings:
        metadata = entry.to_metadata()
        forward.setdefault(entry.source_group_id, []).append(
            Mapping(
                group_id=entry.target_group_id,
                system=entry.target_system,
                metadata=metadata,
            )
        )
        inverse.setdefault(entry.target_group_id, []).append(
            Mapping(
                group_id=entry.source_group_id,
                system=entry.source_system,
                metadata=metadata,
            )
        )
    return StaticOneToManyGroupMapper(forward), StaticOneToManyGroupMapper(inverse)


def build_user_mapper(document: UserMappingFile) -> StaticUserMapper:
    """Build the user mapper, skipping entries with an empty side.

    Raises:
        ConfigurationError: If the mapping is not one to one
    """
    return StaticUserMapper.from_pairs(
        (entry.source_user_id, entry.target_user_id)
        for entry in document.mappings
        if entry.source_user_id and entry.target_user_id
    )


def load_group_mappers(
    path: Path,
) -> tuple[StaticOneToManyGroupMapper, StaticOneToManyGroupMapper]:
    """Load a group mapping file into a mapper and its inverse.

    Raises:
        ConfigurationError: If the file cannot be read or is malformed
    """
    return build_group_mappers(_read_model(path, GroupMappingFile))


def load_user_mapper(path: Path) -> StaticUserMapper:
    """Load a user mapping file.

    Raises:
        ConfigurationError: If the file cannot be read, is malformed or is
            not one to one
    """
    return build_user_mapper(_read_model(path, UserMappingFile))
