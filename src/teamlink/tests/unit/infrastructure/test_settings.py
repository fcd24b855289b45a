"""Unit tests for sync settings."""

import pytest
from pydantic import ValidationError

from groupsync.domain.services import ResolutionPolicy
from infrastructure.settings import SyncSettings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "TEAMLINK_MAX_WORKERS",
        "TEAMLINK_RESOLUTION_POLICY",
        "TEAMLINK_CASE_INSENSITIVE_IDS",
        "TEAMLINK_DRY_RUN",
        "TEAMLINK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSyncSettings:
    """Tests for SyncSettings."""

    def test_defaults(self):
        settings = SyncSettings(_env_file=None)

        assert 1 <= settings.max_workers <= 256
        assert settings.resolution_policy is ResolutionPolicy.STRICT
        assert settings.case_insensitive_ids is True
        assert settings.dry_run is False
        assert settings.log_level == "info"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TEAMLINK_MAX_WORKERS", "4")
        monkeypatch.setenv("TEAMLINK_RESOLUTION_POLICY", "best_effort")
        monkeypatch.setenv("TEAMLINK_CASE_INSENSITIVE_IDS", "false")
        monkeypatch.setenv("TEAMLINK_LOG_LEVEL", "DEBUG")

        settings = SyncSettings(_env_file=None)

        assert settings.max_workers == 4
        assert settings.resolution_policy is ResolutionPolicy.BEST_EFFORT
        assert settings.case_insensitive_ids is False
        assert settings.log_level == "debug"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("TEAMLINK_MAX_WORKERS", "0"),
            ("TEAMLINK_MAX_WORKERS", "257"),
            ("TEAMLINK_RESOLUTION_POLICY", "lenient"),
            ("TEAMLINK_LOG_LEVEL", "verbose"),
        ],
    )
    def test_rejects_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            SyncSettings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
