"""
Log events and level definitions.

Levels run from least to most verbose:
    NONE < FATAL < ERROR < WARN < INFO < DEBUG < DEBUG2 < TRACE

A display level L shows every event whose level is L or less verbose,
so visibility is a plain numeric comparison: ``event.level <= L``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any

from logpipe.template import Segment, plain_text, render_redacted


LABEL_WIDTH = 6


class LogLevel(IntEnum):
    """Severity levels. NONE is the "always log" sentinel."""
    NONE = 0
    FATAL = 1
    ERROR = 2
    WARN = 3
    INFO = 4
    DEBUG = 5
    DEBUG2 = 6
    TRACE = 7

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve level from string name, case-insensitive."""
        name_upper = name.strip().upper()
        try:
            return cls[name_upper]
        except KeyError:
            raise ValueError(
                f"Unknown log level '{name}'. "
                f"Valid levels: {', '.join(m.name for m in cls)}"
            )

    @classmethod
    def from_value(cls, value: "int | str | LogLevel") -> "LogLevel":
        """Resolve level from int or string."""
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise ValueError(
                    f"No log level with value {value}. "
                    f"Valid values: {', '.join(f'{m.name}={m.value}' for m in cls)}"
                )
        raise TypeError(f"Expected int or str, got {type(value).__name__}")

    def shows(self, level: "LogLevel | int") -> bool:
        """True if an event at `level` is visible under this display level."""
        return level <= self


def level_label(level: LogLevel | int) -> str:
    """Fixed-width console label: left-aligned, padded or cut to 6 chars."""
    name = LogLevel(level).name
    return f"{name[:LABEL_WIDTH]:<{LABEL_WIDTH}}"


def format_timestamp(ts: datetime) -> str:
    """dd.MM.yyyy HH:mm:ss:fff"""
    return f"{ts:%d.%m.%Y %H:%M:%S}:{ts.microsecond // 1000:03d}"


@dataclass
class LogEvent:
    """
    One log call. Created on the producer thread, owned by the dispatcher
    once enqueued.

    Everything except `message` and `segments` is fixed at creation.
    Those two are filled exactly once by `render()`.
    """
    timestamp: datetime
    level: LogLevel
    template: str
    args: tuple[Any, ...] = ()
    error: BaseException | None = None
    message: str = ""
    segments: list[Segment] = field(default_factory=list)
    internal: bool = False  # raised by the pipeline about its own sinks
    _rendered: bool = field(default=False, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        level: LogLevel | int | str,
        template: str,
        *args: Any,
        error: BaseException | None = None,
        internal: bool = False,
    ) -> "LogEvent":
        """Factory method with local, timezone-aware timestamp."""
        return cls(
            timestamp=datetime.now().astimezone(),
            level=LogLevel.from_value(level),
            template="" if template is None else str(template),
            args=tuple(args),
            error=error,
            internal=internal,
        )

    @property
    def rendered(self) -> bool:
        return self._rendered

    @property
    def label(self) -> str:
        return level_label(self.level)

    def render(self, blacklist: tuple[str, ...] = ()) -> str:
        """
        Redact and render the template once. Later calls return the
        cached message unchanged, whatever blacklist they pass.
        """
        if self._rendered:
            return self.message

        self.segments = render_redacted(self.template, self.args, blacklist)
        self.message = plain_text(self.segments)
        self._rendered = True
        return self.message
