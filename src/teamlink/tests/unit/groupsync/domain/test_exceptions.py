"""Unit tests for the group sync error taxonomy."""

from groupsync.domain.exceptions import (
    AggregateError,
    DescendantResolutionError,
    GroupNotFoundError,
    NotFoundError,
    TargetUserIDNotFoundError,
    join_errors,
)


class TestAggregateError:
    """Tests for AggregateError."""

    def test_str_lists_every_error(self):
        error = AggregateError(
            "failed to sync one or more ids",
            [ValueError("failed to sync id a: boom"), ValueError("failed to sync id b: bang")],
        )

        assert str(error).splitlines() == [
            "failed to sync one or more ids",
            "failed to sync id a: boom",
            "failed to sync id b: bang",
        ]

    def test_exposes_errors(self):
        first, second = ValueError("a"), KeyError("b")

        assert AggregateError("x", [first, second]).errors == (first, second)


class TestJoinErrors:
    """Tests for join_errors()."""

    def test_no_errors(self):
        assert join_errors([]) is None

    def test_single_error_is_returned_as_is(self):
        error = ValueError("boom")

        assert join_errors([error]) is error

    def test_several_errors_are_aggregated(self):
        errors = [ValueError("a"), ValueError("b")]

        joined = join_errors(errors, "several failures")

        assert isinstance(joined, AggregateError)
        assert joined.errors == tuple(errors)
        assert joined.message == "several failures"


def test_not_found_hierarchy():
    assert issubclass(GroupNotFoundError, NotFoundError)
    assert issubclass(TargetUserIDNotFoundError, NotFoundError)


def test_descendant_resolution_error_names_group():
    error = DescendantResolutionError("eng", RuntimeError("timeout"))

    assert error.group_id == "eng"
    assert str(error) == "error fetching group members: eng: timeout"
