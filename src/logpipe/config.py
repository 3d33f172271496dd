"""
Pipeline configuration.

Two layers:
  - PipelineSettings: validated start-time inputs (pydantic), loadable from
    YAML so a service can keep its logging setup next to the rest of its
    config.
  - RuntimeConfig: the mutable, process-lifetime state the dispatcher reads
    (display level, blacklists). Mutations publish a new immutable
    ConfigSnapshot; readers never see a half-applied change.

Usage:
    settings = PipelineSettings.from_yaml_string('''
    path: logs/service.log
    display_level: info
    string_blacklist: [hunter2]
    file_level_blacklist: [trace]
    ''')
    pipeline = LogPipeline(settings).start()
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from logpipe.records import LogLevel


# ═══════════════════════════════════════════════════════════════════
#  Start-time settings
# ═══════════════════════════════════════════════════════════════════

class PipelineSettings(BaseModel):
    path: str = ""                                  # "" → no file sink
    display_level: LogLevel = LogLevel.DEBUG
    cleanup_before: Optional[datetime] = None
    strict_cleanup: bool = False
    string_blacklist: list[str] = Field(default_factory=list)
    file_level_blacklist: list[LogLevel] = Field(default_factory=list)
    color: bool = True
    grace_period_seconds: float = Field(0.5, ge=0)
    poll_interval_seconds: float = Field(0.05, gt=0)
    error_backoff_seconds: float = Field(1.0, ge=0)
    subscriber_workers: int = Field(4, ge=1)

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @field_validator("display_level", mode="before")
    @classmethod
    def _resolve_level(cls, value: Any) -> LogLevel:
        return LogLevel.from_value(value)

    @field_validator("file_level_blacklist", mode="before")
    @classmethod
    def _resolve_levels(cls, value: Any) -> list[LogLevel]:
        if value is None:
            return []
        if isinstance(value, (str, int)):
            value = [value]
        return [LogLevel.from_value(v) for v in value]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PipelineSettings":
        """Load and validate from a YAML file."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.from_yaml_string(raw)

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "PipelineSettings":
        """Load and validate from a YAML string. A `logpipe:` root key is optional."""
        data = yaml.safe_load(yaml_string) or {}
        if isinstance(data, dict) and isinstance(data.get("logpipe"), dict):
            data = data["logpipe"]
        return cls.model_validate(data)

    @classmethod
    def from_dict(cls, data: dict) -> "PipelineSettings":
        return cls.model_validate(data)

    def to_dict(self, exclude_none: bool = True) -> dict:
        return self.model_dump(exclude_none=exclude_none)


# ═══════════════════════════════════════════════════════════════════
#  Runtime configuration
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConfigSnapshot:
    """What the dispatcher uses for one event."""
    display_level: LogLevel
    string_blacklist: tuple[str, ...] = ()
    file_level_blacklist: frozenset[LogLevel] = frozenset()

    def console_visible(self, level: LogLevel | int) -> bool:
        return level <= self.display_level

    def file_visible(self, level: LogLevel | int) -> bool:
        return level not in self.file_level_blacklist


class RuntimeConfig:
    """
    Mutable pipeline configuration, owned by one LogPipeline.

    Single writer (the controller), many readers. Every change swaps in a
    fresh snapshot under the lock; `snapshot()` is a plain attribute read.
    """

    def __init__(
        self,
        display_level: LogLevel | int | str = LogLevel.DEBUG,
        string_blacklist: Iterable[str] = (),
        file_level_blacklist: Iterable[LogLevel | int | str] = (),
    ):
        self._lock = threading.Lock()
        self._snapshot = ConfigSnapshot(display_level=LogLevel.from_value(display_level))
        self.add_blacklist(*string_blacklist)
        self.add_level_blacklist(*file_level_blacklist)

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "RuntimeConfig":
        return cls(
            display_level=settings.display_level,
            string_blacklist=settings.string_blacklist,
            file_level_blacklist=settings.file_level_blacklist,
        )

    def snapshot(self) -> ConfigSnapshot:
        return self._snapshot

    # ── Display level ─────────────────────────────────────────────

    @property
    def display_level(self) -> LogLevel:
        return self._snapshot.display_level

    @display_level.setter
    def display_level(self, value: LogLevel | int | str) -> None:
        level = LogLevel.from_value(value)
        with self._lock:
            snap = self._snapshot
            self._snapshot = ConfigSnapshot(
                display_level=level,
                string_blacklist=snap.string_blacklist,
                file_level_blacklist=snap.file_level_blacklist,
            )

    # ── Blacklists ────────────────────────────────────────────────

    def add_blacklist(self, *entries: str) -> None:
        """Add strings to redact. Duplicates and empty strings are ignored."""
        with self._lock:
            snap = self._snapshot
            current = list(snap.string_blacklist)
            for entry in entries:
                if entry and entry not in current:
                    current.append(entry)
            self._snapshot = ConfigSnapshot(
                display_level=snap.display_level,
                string_blacklist=tuple(current),
                file_level_blacklist=snap.file_level_blacklist,
            )

    def add_level_blacklist(self, *levels: LogLevel | int | str) -> None:
        """Exclude levels from the file sink (console and subscribers unaffected)."""
        resolved = {LogLevel.from_value(level) for level in levels}
        with self._lock:
            snap = self._snapshot
            self._snapshot = ConfigSnapshot(
                display_level=snap.display_level,
                string_blacklist=snap.string_blacklist,
                file_level_blacklist=snap.file_level_blacklist | resolved,
            )

    @property
    def string_blacklist(self) -> tuple[str, ...]:
        return self._snapshot.string_blacklist

    @property
    def file_level_blacklist(self) -> frozenset[LogLevel]:
        return self._snapshot.file_level_blacklist
