"""
Bridge from the standard library `logging` module.

Severity mapping (stdlib → logpipe):
    CRITICAL (50)  → FATAL
    ERROR    (40)  → ERROR
    WARNING  (30)  → WARN
    INFO     (20)  → INFO
    DEBUG    (10)  → DEBUG2
    below 10       → TRACE
Levels between the standard ones map like the standard level below them.

Formatted text becomes the template with no positional args, prefixed by
the event id: "[ 7] connection reset".
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from logpipe.core import LogPipeline
from logpipe.records import LogLevel

S = TypeVar("S")

SEVERITY_MAP: list[tuple[int, LogLevel]] = [
    (logging.CRITICAL, LogLevel.FATAL),
    (logging.ERROR, LogLevel.ERROR),
    (logging.WARNING, LogLevel.WARN),
    (logging.INFO, LogLevel.INFO),
    (logging.DEBUG, LogLevel.DEBUG2),
]


def map_severity(severity: int) -> LogLevel:
    """Map a stdlib logging level number onto LogLevel."""
    for threshold, level in SEVERITY_MAP:
        if severity >= threshold:
            return level
    return LogLevel.TRACE


def log_external(
    pipeline: LogPipeline,
    severity: int,
    event_id: int | str,
    state: S,
    error: BaseException | None,
    formatter: Callable[[S, BaseException | None], str],
) -> None:
    """Enqueue one externally formatted message."""
    text = formatter(state, error)
    pipeline.log(map_severity(severity), f"[{event_id:>2}] {text}", error=error)


class PipelineHandler(logging.Handler):
    """
    logging.Handler that forwards records into a LogPipeline. Records
    arriving while the pipeline is stopped are dropped.

        logging.getLogger().addHandler(PipelineHandler(pipeline))
        logging.getLogger("db").warning("slow query", extra={"event_id": 12})
    """

    def __init__(self, pipeline: LogPipeline, level: int = logging.NOTSET):
        super().__init__(level)
        self.pipeline = pipeline

    def filter(self, record: logging.LogRecord):
        # Nothing drains a stopped pipeline
        if not self.pipeline.running:
            return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            error = record.exc_info[1] if record.exc_info else None
            log_external(
                self.pipeline,
                record.levelno,
                getattr(record, "event_id", 0),
                record,
                error,
                self._format_record,
            )
        except Exception:
            self.handleError(record)

    def _format_record(self, record: logging.LogRecord, error: Any) -> str:
        # The traceback travels as the event error, not inside the message
        record.message = record.getMessage()
        formatter = self.formatter
        if formatter is None:
            return record.message
        if formatter.usesTime():
            record.asctime = formatter.formatTime(record, formatter.datefmt)
        return formatter.formatMessage(record)
