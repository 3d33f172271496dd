"""
Tests for pipeline configuration.

Covers:
- PipelineSettings validation (levels by name, paths, bounds)
- YAML / dict loading
- RuntimeConfig snapshots and mutation
- Stale log cleanup helper
"""

from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from logpipe.cleanup import creation_time, remove_stale_logs
from logpipe.config import ConfigSnapshot, PipelineSettings, RuntimeConfig
from logpipe.errors import CleanupError
from logpipe.records import LogLevel


# ═══════════════════════════════════════════════════════════════════
#  PipelineSettings
# ═══════════════════════════════════════════════════════════════════

class TestPipelineSettings:
    def test_defaults(self):
        s = PipelineSettings()
        assert s.path == ""
        assert s.display_level == LogLevel.DEBUG
        assert s.cleanup_before is None
        assert s.strict_cleanup is False
        assert s.string_blacklist == []
        assert s.file_level_blacklist == []
        assert s.grace_period_seconds == 0.5

    def test_level_names_resolved(self):
        s = PipelineSettings(display_level="warn", file_level_blacklist=["trace", 6])
        assert s.display_level == LogLevel.WARN
        assert s.file_level_blacklist == [LogLevel.TRACE, LogLevel.DEBUG2]

    def test_single_level_blacklist_entry(self):
        assert PipelineSettings(file_level_blacklist="debug").file_level_blacklist == [LogLevel.DEBUG]

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            PipelineSettings(display_level="verbose")

    def test_path_object_accepted(self):
        assert PipelineSettings(path=Path("logs") / "a.log").path == str(Path("logs") / "a.log")

    def test_poll_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            PipelineSettings(poll_interval_seconds=0)

    def test_from_yaml_string(self):
        s = PipelineSettings.from_yaml_string("""
path: logs/service.log
display_level: info
string_blacklist: [hunter2, api-key]
file_level_blacklist: [trace, debug2]
cleanup_before: 2026-01-01T00:00:00
strict_cleanup: true
""")
        assert s.path == "logs/service.log"
        assert s.display_level == LogLevel.INFO
        assert s.string_blacklist == ["hunter2", "api-key"]
        assert s.file_level_blacklist == [LogLevel.TRACE, LogLevel.DEBUG2]
        assert s.cleanup_before == datetime(2026, 1, 1)
        assert s.strict_cleanup is True

    def test_from_yaml_string_with_root_key(self):
        s = PipelineSettings.from_yaml_string("logpipe:\n  display_level: error\n")
        assert s.display_level == LogLevel.ERROR

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "logging.yaml"
        path.write_text("display_level: fatal\ncolor: false\n", encoding="utf-8")
        s = PipelineSettings.from_yaml(path)
        assert s.display_level == LogLevel.FATAL
        assert s.color is False

    def test_empty_yaml_gives_defaults(self):
        assert PipelineSettings.from_yaml_string("") == PipelineSettings()

    def test_from_dict_roundtrip(self):
        s = PipelineSettings.from_dict({"display_level": 3, "path": "x.log"})
        assert PipelineSettings.from_dict(s.to_dict()) == s


# ═══════════════════════════════════════════════════════════════════
#  RuntimeConfig
# ═══════════════════════════════════════════════════════════════════

class TestRuntimeConfig:
    def test_from_settings(self):
        cfg = RuntimeConfig.from_settings(PipelineSettings(
            display_level="info", string_blacklist=["a"], file_level_blacklist=["trace"],
        ))
        snap = cfg.snapshot()
        assert snap.display_level == LogLevel.INFO
        assert snap.string_blacklist == ("a",)
        assert snap.file_level_blacklist == frozenset({LogLevel.TRACE})

    def test_snapshot_is_immutable_and_stable(self):
        cfg = RuntimeConfig()
        before = cfg.snapshot()
        cfg.display_level = "error"
        cfg.add_blacklist("x")
        assert before.display_level == LogLevel.DEBUG
        assert before.string_blacklist == ()
        with pytest.raises(AttributeError):
            before.display_level = LogLevel.INFO

    def test_blacklist_deduplicated_in_order(self):
        cfg = RuntimeConfig()
        cfg.add_blacklist("b", "a", "b", "")
        cfg.add_blacklist("a", "c")
        assert cfg.string_blacklist == ("b", "a", "c")

    def test_level_blacklist_accumulates(self):
        cfg = RuntimeConfig()
        cfg.add_level_blacklist(LogLevel.TRACE)
        cfg.add_level_blacklist("debug2", 5)
        assert cfg.file_level_blacklist == {LogLevel.TRACE, LogLevel.DEBUG2, LogLevel.DEBUG}

    def test_snapshot_filters(self):
        snap = ConfigSnapshot(
            display_level=LogLevel.WARN,
            file_level_blacklist=frozenset({LogLevel.INFO}),
        )
        assert snap.console_visible(LogLevel.ERROR)
        assert not snap.console_visible(LogLevel.INFO)
        assert not snap.file_visible(LogLevel.INFO)
        assert snap.file_visible(LogLevel.TRACE)


# ═══════════════════════════════════════════════════════════════════
#  Stale log cleanup
# ═══════════════════════════════════════════════════════════════════

class TestRemoveStaleLogs:
    def test_removes_old_keeps_protected(self, tmp_path):
        (tmp_path / "a.log").write_text("a")
        (tmp_path / "b.log").write_text("b")
        (tmp_path / "sub").mkdir()
        keep = tmp_path / "current.log"
        keep.write_text("c")

        removed = remove_stale_logs(tmp_path, datetime.now() + timedelta(hours=1), keep=[keep])

        assert sorted(p.name for p in removed) == ["a.log", "b.log"]
        assert keep.exists()
        assert (tmp_path / "sub").is_dir()

    def test_cutoff_in_past_removes_nothing(self, tmp_path):
        (tmp_path / "a.log").write_text("a")
        assert remove_stale_logs(tmp_path, datetime(2000, 1, 1)) == []

    def test_missing_directory(self, tmp_path):
        assert remove_stale_logs(tmp_path / "nope", datetime.now()) == []

    def test_reports_deletions_and_failures(self, tmp_path):
        (tmp_path / "a.log").write_text("a")
        log = MagicMock()
        remove_stale_logs(tmp_path, datetime.now() + timedelta(hours=1), log=log)
        log.debug.assert_called_once_with("{} deleted", "a.log")

        (tmp_path / "b.log").write_text("b")
        log = MagicMock()
        with patch("pathlib.Path.unlink", side_effect=PermissionError("denied")):
            removed = remove_stale_logs(tmp_path, datetime.now() + timedelta(hours=1), log=log)
        assert removed == []
        args, kwargs = log.error.call_args
        assert args[0] == "Couldn't delete log file {}"
        assert isinstance(kwargs["error"], PermissionError)

    def test_strict_raises(self, tmp_path):
        (tmp_path / "a.log").write_text("a")
        with patch("pathlib.Path.unlink", side_effect=PermissionError("denied")):
            with pytest.raises(CleanupError) as info:
                remove_stale_logs(tmp_path, datetime.now() + timedelta(hours=1), strict=True)
        assert info.value.path.name == "a.log"
        assert isinstance(info.value.cause, PermissionError)

    def test_creation_time_is_recent(self, tmp_path):
        path = tmp_path / "a.log"
        path.write_text("a")
        assert abs(creation_time(path) - datetime.now().timestamp()) < 60
