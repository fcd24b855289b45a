"""Unit tests for the mapping file loaders."""

import json

import pytest

from groupsync.domain.exceptions import ConfigurationError, TargetUserIDNotFoundError
from groupsync.domain.metadata import AccessLevel, AccessLevelMetadata, Role, RoleMetadata
from groupsync.domain.value_objects import Mapping
from groupsync.infrastructure.config import (
    GroupMappingEntry,
    load_group_mappers,
    load_user_mapper,
)


def _write(tmp_path, name, document):
    path = tmp_path / name
    path.write_text(document if isinstance(document, str) else json.dumps(document))
    return path


class TestLoadGroupMappers:
    """Tests for load_group_mappers()."""

    def test_builds_forward_and_inverse_mappers(self, tmp_path):
        path = _write(
            tmp_path,
            "groups.json",
            {
                "mappings": [
                    {"source_group_id": "eng", "target_group_id": "team-1"},
                    {"source_group_id": "eng", "target_group_id": "team-2"},
                    {
                        "source_group_id": "leads",
                        "target_group_id": "team-1",
                        "source_system": "google",
                        "role": "admin",
                    },
                ]
            },
        )

        forward, inverse = load_group_mappers(path)

        assert forward.mapped_group_ids("eng") == ["team-1", "team-2"]
        assert forward.mappings("leads") == [
            Mapping(group_id="team-1", metadata=RoleMetadata(Role.ADMIN))
        ]
        assert inverse.mappings("team-1") == [
            Mapping(group_id="eng"),
            Mapping(
                group_id="leads", system="google", metadata=RoleMetadata(Role.ADMIN)
            ),
        ]

    def test_access_level_metadata(self, tmp_path):
        path = _write(
            tmp_path,
            "groups.json",
            {
                "mappings": [
                    {
                        "source_group_id": "eng",
                        "target_group_id": "42",
                        "access_level": "40",
                    }
                ]
            },
        )

        forward, _ = load_group_mappers(path)

        assert forward.mappings("eng")[0].metadata == AccessLevelMetadata(
            AccessLevel.MAINTAINER
        )

    @pytest.mark.parametrize("roles", [("member", "admin"), ("admin", "member")])
    def test_repeated_pair_keeps_highest_role(self, tmp_path, roles):
        path = _write(
            tmp_path,
            "groups.json",
            {
                "mappings": [
                    {"source_group_id": "eng", "target_group_id": "team-1", "role": role}
                    for role in roles
                ]
            },
        )

        forward, inverse = load_group_mappers(path)

        assert forward.mappings("eng") == [
            Mapping(group_id="team-1", metadata=RoleMetadata(Role.ADMIN))
        ]
        assert inverse.mappings("team-1") == [
            Mapping(group_id="eng", metadata=RoleMetadata(Role.ADMIN))
        ]

    @pytest.mark.parametrize(
        "document",
        [
            "{",
            {"mappings": [{"source_group_id": "", "target_group_id": "team-1"}]},
            {"mappings": [{"source_group_id": "eng"}]},
            {
                "mappings": [
                    {
                        "source_group_id": "eng",
                        "target_group_id": "team-1",
                        "role": "admin",
                        "access_level": "owner",
                    }
                ]
            },
        ],
    )
    def test_malformed_file(self, tmp_path, document):
        path = _write(tmp_path, "groups.json", document)

        with pytest.raises(ConfigurationError, match="failed to parse mapping file"):
            load_group_mappers(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="failed to read mapping file"):
            load_group_mappers(tmp_path / "missing.json")


class TestLoadUserMapper:
    """Tests for load_user_mapper()."""

    def test_skips_entries_with_an_empty_side(self, tmp_path):
        path = _write(
            tmp_path,
            "users.json",
            {
                "mappings": [
                    {"source_user_id": "alice@example.com", "target_user_id": "alice-gh"},
                    {"source_user_id": "bob@example.com", "target_user_id": ""},
                    {"target_user_id": "orphan-gh"},
                ]
            },
        )

        mapper = load_user_mapper(path)

        assert len(mapper) == 1
        assert mapper.mapped_user_id("alice@example.com") == "alice-gh"
        with pytest.raises(TargetUserIDNotFoundError):
            mapper.mapped_user_id("bob@example.com")

    def test_rejects_non_bijective_mapping(self, tmp_path):
        path = _write(
            tmp_path,
            "users.json",
            {
                "mappings": [
                    {"source_user_id": "alice", "target_user_id": "shared"},
                    {"source_user_id": "bob", "target_user_id": "shared"},
                ]
            },
        )

        with pytest.raises(ConfigurationError):
            load_user_mapper(path)


class TestMetadataFields:
    """Tests for metadata conversion on mapping entries."""

    def test_no_metadata(self):
        entry = GroupMappingEntry(source_group_id="eng", target_group_id="team-1")

        assert entry.to_metadata() is None

    def test_fields_from_metadata(self):
        assert GroupMappingEntry.fields_from_metadata(RoleMetadata(Role.ADMIN)) == {
            "role": "admin"
        }
        assert GroupMappingEntry.fields_from_metadata(
            AccessLevelMetadata(AccessLevel.OWNER)
        ) == {"access_level": "owner"}
        assert GroupMappingEntry.fields_from_metadata(None) == {}
