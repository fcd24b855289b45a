"""Unit tests for the teamlink command line."""

import json

import pytest
import structlog

from infrastructure.settings import get_settings
from teamlink_cli import EXIT_CONFIG_ERROR, EXIT_OK, EXIT_SYNC_FAILED, build_parser, main


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    monkeypatch.setenv("TEAMLINK_LOG_LEVEL", "critical")
    monkeypatch.delenv("TEAMLINK_DRY_RUN", raising=False)
    monkeypatch.delenv("TEAMLINK_CASE_INSENSITIVE_IDS", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


def _write(path, document):
    path.write_text(json.dumps(document))
    return path


@pytest.fixture
def files(tmp_path):
    """Mapping and snapshot files for a small two-system setup."""
    return {
        "group_mapping": _write(
            tmp_path / "groups.json",
            {
                "mappings": [
                    {"source_group_id": "eng", "target_group_id": "team-1"},
                    {
                        "source_group_id": "leads",
                        "target_group_id": "team-1",
                        "role": "admin",
                    },
                    {"source_group_id": "leads", "target_group_id": "team-2"},
                ]
            },
        ),
        "user_mapping": _write(
            tmp_path / "users.json",
            {
                "mappings": [
                    {"source_user_id": "alice", "target_user_id": "alice-gh"},
                    {"source_user_id": "bob", "target_user_id": "bob-gh"},
                ]
            },
        ),
        "source": _write(
            tmp_path / "source.json",
            {
                "groups": [
                    {"id": "eng", "members": [{"user": "bob"}, {"group": "leads"}]},
                    {"id": "leads", "members": [{"user": "alice"}]},
                ]
            },
        ),
        "target": _write(
            tmp_path / "target.json",
            {
                "groups": [
                    {"id": "team-1", "members": [{"user": "Stale-GH"}]},
                    {"id": "team-2", "members": []},
                ]
            },
        ),
    }


def _args(files, *extra):
    return [
        "sync",
        "--group-mapping",
        str(files["group_mapping"]),
        "--user-mapping",
        str(files["user_mapping"]),
        "--source",
        str(files["source"]),
        "--target",
        str(files["target"]),
        *extra,
    ]


def _members(path):
    snapshot = json.loads(path.read_text())
    return {
        group["id"]: sorted(
            (member.get("user") or member.get("group"), member.get("role"))
            for member in group.get("members", [])
        )
        for group in snapshot["groups"]
    }


class TestSyncCommand:
    """Tests for `teamlink sync`."""

    def test_syncs_by_target_group(self, files):
        """Target mode gives team-1 the union of eng and leads."""
        exit_code = main(_args(files, "--mode", "target"))

        assert exit_code == EXIT_OK
        assert _members(files["target"]) == {
            "team-1": [("alice-gh", "admin"), ("bob-gh", None)],
            "team-2": [("alice-gh", None)],
        }

    def test_syncs_selected_source_group(self, files):
        exit_code = main(_args(files, "--group", "leads"))

        assert exit_code == EXIT_OK
        assert _members(files["target"]) == {
            "team-1": [("alice-gh", "admin")],
            "team-2": [("alice-gh", None)],
        }

    def test_dry_run_leaves_target_untouched(self, files, capsys):
        before = files["target"].read_text()

        exit_code = main(_args(files, "--mode", "target", "--dry-run"))

        assert exit_code == EXIT_OK
        assert files["target"].read_text() == before
        assert "dry run" in capsys.readouterr().out

    def test_failing_group_exits_with_sync_failure(self, files, capsys):
        _write(
            files["group_mapping"],
            {
                "mappings": [
                    {"source_group_id": "eng", "target_group_id": "missing"},
                    {"source_group_id": "leads", "target_group_id": "team-2"},
                ]
            },
        )

        exit_code = main(_args(files))

        assert exit_code == EXIT_SYNC_FAILED
        assert "failed to sync id eng" in capsys.readouterr().err
        assert _members(files["target"])["team-2"] == [("alice-gh", None)]

    def test_summary_lists_targets_written_before_a_sibling_failed(self, files, capsys):
        """A fan-out with one missing target still reports the target it wrote."""
        _write(
            files["group_mapping"],
            {
                "mappings": [
                    {"source_group_id": "eng", "target_group_id": "team-1"},
                    {"source_group_id": "eng", "target_group_id": "missing"},
                ]
            },
        )

        exit_code = main(_args(files))

        captured = capsys.readouterr()
        assert exit_code == EXIT_SYNC_FAILED
        assert _members(files["target"])["team-1"] == [
            ("alice-gh", None),
            ("bob-gh", None),
        ]
        assert "team-1" in captured.out
        assert "failed to sync id eng" in captured.err

    def test_invalid_mapping_file_exits_with_config_error(self, files, capsys):
        files["group_mapping"].write_text("{")

        exit_code = main(_args(files))

        assert exit_code == EXIT_CONFIG_ERROR
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_settings_exit_with_config_error(self, files, monkeypatch):
        monkeypatch.setenv("TEAMLINK_MAX_WORKERS", "0")

        assert main(_args(files)) == EXIT_CONFIG_ERROR

    def test_rejects_non_positive_max_workers(self, files):
        assert main(_args(files, "--max-workers", "0")) == EXIT_CONFIG_ERROR


class TestParser:
    """Tests for the argument parser."""

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rejects_unknown_mode(self, files):
        with pytest.raises(SystemExit):
            build_parser().parse_args(_args(files, "--mode", "sideways"))

    def test_version_command(self, capsys):
        assert main(["version"]) == EXIT_OK
        assert capsys.readouterr().out.startswith("teamlink ")
