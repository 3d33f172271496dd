"""
Log line formatters.

Both console and file use the same layout:
    [17.10.2026 14:32:05:123] [INFO  ] Loaded 120 rows
followed, when the event carries an error, by the rendered error block.
The console formatter adds ANSI color; the line formatter is plain text.
"""

import traceback
from abc import ABC, abstractmethod

from logpipe.records import LogEvent, LogLevel, format_timestamp
from logpipe.template import Segment, Style


RESET = "\033[0m"

LEVEL_COLORS = {
    LogLevel.NONE: "\033[37m",        # gray
    LogLevel.FATAL: "\033[30;41m",    # black on dark red
    LogLevel.ERROR: "\033[91m",       # red
    LogLevel.WARN: "\033[93m",        # yellow
    LogLevel.INFO: "\033[96m",        # cyan
    LogLevel.DEBUG: "\033[37m",
    LogLevel.DEBUG2: "\033[37m",
    LogLevel.TRACE: "\033[37m",
}

STYLE_COLORS = {
    Style.PLAIN: "\033[97m",          # white
    Style.VALUE: "\033[96m",          # cyan
    Style.EMPHASIS: "\033[95m",       # magenta
}


def render_error(error: BaseException) -> str:
    """Error block text: the formatted traceback, or str() if that fails."""
    try:
        text = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    except Exception:
        text = f"{type(error).__name__}: {error}"
    return text.rstrip("\n")


class LogFormatter(ABC):
    """Base formatter. Transforms a rendered LogEvent → string (no trailing newline)."""

    @abstractmethod
    def format(self, event: LogEvent) -> str: ...


class LineFormatter(LogFormatter):
    """
    Plain-text line for files.
    Example: [17.10.2026 14:32:05:123] [WARN  ] Disk almost full
    """

    def format(self, event: LogEvent) -> str:
        line = f"[{format_timestamp(event.timestamp)}] [{event.label}] {event.message}"
        if event.error is not None:
            line = f"{line}\n{render_error(event.error)}"
        return line


class ConsoleFormatter(LogFormatter):
    """
    Colored line for the terminal. The level label takes the level color,
    message segments take their style color. With color off this is
    identical to LineFormatter.
    """

    def __init__(self, color: bool = True):
        self.color = color

    def format(self, event: LogEvent) -> str:
        if not self.color:
            return LineFormatter().format(event)

        level_color = LEVEL_COLORS.get(event.level, "")
        head = (
            f"[{format_timestamp(event.timestamp)}] "
            f"{level_color}[{event.label}]{RESET} "
        )
        body = "".join(self._paint(seg) for seg in event.segments)
        line = f"{head}{body}{RESET}"
        if event.error is not None:
            line = f"{line}\n{render_error(event.error)}"
        return line

    @staticmethod
    def _paint(seg: Segment) -> str:
        return f"{STYLE_COLORS.get(seg.style, '')}{seg.text}"
