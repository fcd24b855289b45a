"""Unit tests for mapping metadata."""

import pytest

from groupsync.domain.metadata import (
    DEFAULT_ACCESS_LEVEL,
    AccessLevel,
    AccessLevelMetadata,
    Role,
    RoleMetadata,
    combine_metadata,
)


class TestRoleMetadata:
    """Tests for RoleMetadata."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("member", Role.MEMBER),
            ("direct_member", Role.MEMBER),
            ("admin", Role.ADMIN),
            ("ADMIN", Role.ADMIN),
            ("hiring_manager", Role.MEMBER),
        ],
    )
    def test_from_string(self, value, expected):
        """Should parse known roles and fall back to MEMBER."""
        assert RoleMetadata.from_string(value).role == expected

    def test_combine_keeps_highest_role(self):
        """Should keep the higher role whatever the order."""
        member = RoleMetadata(Role.MEMBER)
        admin = RoleMetadata(Role.ADMIN)

        assert member.combine(admin) == admin
        assert admin.combine(member) == admin

    def test_combine_with_other_kind_keeps_self(self):
        """Should ignore metadata of another kind."""
        member = RoleMetadata(Role.MEMBER)

        assert member.combine(AccessLevelMetadata(AccessLevel.OWNER)) is member
        assert member.combine(None) is member

    def test_api_and_invite_names(self):
        assert Role.ADMIN.api_name() == "admin"
        assert Role.MEMBER.api_name() == "member"
        assert Role.MEMBER.invite_name() == "direct_member"


class TestAccessLevelMetadata:
    """Tests for AccessLevelMetadata."""

    def test_default_is_developer(self):
        assert AccessLevelMetadata().access_level == DEFAULT_ACCESS_LEVEL
        assert DEFAULT_ACCESS_LEVEL == AccessLevel.DEVELOPER

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("maintainer", AccessLevel.MAINTAINER),
            ("Reporter", AccessLevel.REPORTER),
            ("40", AccessLevel.MAINTAINER),
            ("0", AccessLevel.NO_ACCESS),
        ],
    )
    def test_from_string(self, value, expected):
        """Should parse access levels by name or number."""
        assert AccessLevelMetadata.from_string(value).access_level == expected

    @pytest.mark.parametrize("value", ["superuser", "41"])
    def test_from_string_rejects_unknown(self, value):
        """Should raise ValueError for unknown access levels."""
        with pytest.raises(ValueError):
            AccessLevelMetadata.from_string(value)

    def test_combine_keeps_highest_level(self):
        guest = AccessLevelMetadata(AccessLevel.GUEST)
        owner = AccessLevelMetadata(AccessLevel.OWNER)

        assert guest.combine(owner) == owner
        assert owner.combine(guest) == owner


class TestCombineMetadata:
    """Tests for combine_metadata()."""

    def test_both_none(self):
        assert combine_metadata(None, None) is None

    def test_one_side_none(self):
        admin = RoleMetadata(Role.ADMIN)

        assert combine_metadata(admin, None) is admin
        assert combine_metadata(None, admin) is admin

    def test_commutative_for_same_kind(self):
        member = RoleMetadata(Role.MEMBER)
        admin = RoleMetadata(Role.ADMIN)

        assert combine_metadata(member, admin) == combine_metadata(admin, member)
