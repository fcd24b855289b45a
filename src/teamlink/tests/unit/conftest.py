"""Unit test fixtures shared across the group sync tests."""

from unittest.mock import create_autospec

import pytest

from groupsync.application.observability import ConcurrentSyncProbe, GroupSyncProbe
from groupsync.domain.observability import DescendantResolverProbe


@pytest.fixture
def mock_resolver_probe():
    """Create mock descendant resolver probe."""
    return create_autospec(DescendantResolverProbe, instance=True)


@pytest.fixture
def mock_sync_probe():
    """Create mock group sync probe."""
    return create_autospec(GroupSyncProbe, instance=True)


@pytest.fixture
def mock_batch_probe():
    """Create mock concurrent sync probe."""
    return create_autospec(ConcurrentSyncProbe, instance=True)
