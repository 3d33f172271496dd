"""
Log sinks (output destinations).

The dispatcher hands every rendered event to:
  - ConsoleSink     if the display level lets it through
  - FileSink        unless its level is on the file-level blacklist
  - SubscriberSink  always; callbacks run off the dispatcher thread
"""

import contextlib
import os
import sys
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, TextIO

from logpipe.errors import SinkError
from logpipe.formatters import ConsoleFormatter, LineFormatter, LogFormatter
from logpipe.records import LogEvent

Subscriber = Callable[[LogEvent], None]


class LogSink(ABC):
    """Base sink. Receives events that already passed the level filter."""

    def __init__(self, name: str, formatter: LogFormatter | None = None):
        self.name = name
        self._formatter = formatter

    @property
    def formatter(self) -> LogFormatter:
        if self._formatter is None:
            self._formatter = self._default_formatter()
        return self._formatter

    @formatter.setter
    def formatter(self, value: LogFormatter) -> None:
        self._formatter = value

    def _default_formatter(self) -> LogFormatter:
        return LineFormatter()

    @abstractmethod
    def emit(self, event: LogEvent) -> None:
        """Write one rendered event."""
        ...

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.flush()


class ConsoleSink(LogSink):
    """Writes colored lines to a text stream (stdout unless given)."""

    def __init__(
        self,
        name: str = "console",
        formatter: LogFormatter | None = None,
        color: bool = True,
        stream: TextIO | None = None,
    ):
        super().__init__(name, formatter)
        self.color = color
        self._stream = stream
        self._lock = threading.Lock()

    def _default_formatter(self) -> LogFormatter:
        return ConsoleFormatter(color=self.color)

    @property
    def stream(self) -> TextIO:
        # Resolved per call so redirected stdout (tests, daemons) is honored
        return self._stream if self._stream is not None else sys.stdout

    def emit(self, event: LogEvent) -> None:
        formatted = self.formatter.format(event)
        with self._lock:
            print(formatted, file=self.stream, flush=True)


class FileSink(LogSink):
    """
    Appends plain-text lines to one log file, flushed per event.

    The file is created exclusively: an existing path is never reused or
    overwritten.
    """

    def __init__(
        self,
        path: str | Path,
        name: str = "file",
        formatter: LogFormatter | None = None,
    ):
        super().__init__(name, formatter)
        self.path = Path(path)
        self._file: TextIO | None = None
        self._lock = threading.Lock()

    def open(self) -> "FileSink":
        """Create parent directories and the file. Raises if the file exists."""
        with self._lock:
            if self._file is not None:
                return self
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "x", encoding="utf-8", newline="")
        return self

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def emit(self, event: LogEvent) -> None:
        formatted = self.formatter.format(event)
        with self._lock:
            if self._file is None:
                return
            try:
                self._file.write(formatted + "\n")
                self._file.flush()
            except Exception as exc:
                raise SinkError(self.name, exc) from exc

    def flush(self) -> None:
        with self._lock:
            if self._file:
                self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file is None:
                return
            try:
                self._file.flush()
            finally:
                self._file.close()
                self._file = None

    def discard(self) -> None:
        """Close and remove the file, as if open() never happened. Best effort."""
        self.close()
        with contextlib.suppress(OSError):
            os.remove(self.path)


class SubscriberSink(LogSink):
    """
    Fans events out to registered callbacks on a small thread pool.

    emit() only schedules work, so a slow subscriber cannot stall the
    dispatcher. Callback exceptions stay in their future and are counted.
    """

    def __init__(self, name: str = "subscribers", max_workers: int = 4):
        super().__init__(name)
        self.max_workers = max_workers
        self._subscribers: list[Subscriber] = []
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._failures = 0

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        """Remove a callback. Returns True if it was registered."""
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                return False
            return True

    @property
    def subscribers(self) -> list[Subscriber]:
        with self._lock:
            return list(self._subscribers)

    @property
    def failures(self) -> int:
        return self._failures

    def emit(self, event: LogEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
            if not subscribers:
                return
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="logpipe-subscriber",
                )
            executor = self._executor

        for callback in subscribers:
            try:
                future = executor.submit(callback, event)
            except RuntimeError:
                # Executor shut down by a concurrent close()
                with self._lock:
                    self._failures += 1
                continue
            future.add_done_callback(self._record_outcome)

    def _record_outcome(self, future: Future) -> None:
        if not future.cancelled() and future.exception() is not None:
            with self._lock:
                self._failures += 1

    def close(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
