"""
LogPipeline: lifecycle controller and producer API.

Producers call `info()`, `error()`, … from any thread; each call stamps a
LogEvent and enqueues it without blocking. A single dispatcher thread,
started by `start()` and stopped by `stop()`, renders and writes them.

Usage:
    log = LogPipeline.start_logger("logs/service.log", LogLevel.INFO)
    log.add_blacklist(api_token)
    log.info("Loaded {} rows from {}", 120, "prices.csv")
    log.error("Upload failed for {}", bucket, error=exc)
    log.stop()
"""

from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from logpipe.cleanup import remove_stale_logs
from logpipe.config import PipelineSettings, RuntimeConfig
from logpipe.dispatcher import Dispatcher
from logpipe.errors import CleanupError, StartupError
from logpipe.event_queue import EventQueue
from logpipe.records import LogEvent, LogLevel
from logpipe.sinks import ConsoleSink, FileSink, Subscriber, SubscriberSink


class LogPipeline:
    """
    One independent pipeline: queue, configuration, sinks, dispatcher.

    Stopped → start() → Running → stop() → Stopped. Starting a running
    pipeline raises StartupError; stopping a stopped one does nothing.
    """

    NONE = LogLevel.NONE
    FATAL = LogLevel.FATAL
    ERROR = LogLevel.ERROR
    WARN = LogLevel.WARN
    INFO = LogLevel.INFO
    DEBUG = LogLevel.DEBUG
    DEBUG2 = LogLevel.DEBUG2
    TRACE = LogLevel.TRACE

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        *,
        console: ConsoleSink | None = None,
        **overrides: Any,
    ) -> None:
        if settings is None:
            settings = PipelineSettings(**overrides)
        elif overrides:
            settings = PipelineSettings.model_validate(
                {**settings.model_dump(), **overrides}
            )
        self.settings = settings
        self.config = RuntimeConfig.from_settings(settings)
        self.console = console or ConsoleSink(color=settings.color)
        self.subscribers = SubscriberSink(max_workers=settings.subscriber_workers)
        self.file_sink: FileSink | None = None

        self._queue = EventQueue()
        self._dispatcher: Dispatcher | None = None
        self._state_lock = threading.Lock()
        self._running = False

    @classmethod
    def start_logger(
        cls,
        path: str | Path = "",
        display_level: LogLevel | int | str = LogLevel.DEBUG,
        cleanup_before: datetime | None = None,
        strict_cleanup: bool = False,
        **kwargs: Any,
    ) -> "LogPipeline":
        """Build a pipeline from arguments and start it."""
        pipeline = cls(
            path=path,
            display_level=display_level,
            cleanup_before=cleanup_before,
            strict_cleanup=strict_cleanup,
            **kwargs,
        )
        return pipeline.start()

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> "LogPipeline":
        """
        Open the log file, sweep stale logs, launch the dispatcher.

        Raises:
            StartupError: already running, the previous dispatcher outlived
                its grace period and is still running, the log file exists or
                cannot be created, or a stale log could not be deleted in
                strict mode (the new log file is removed again).
        """
        with self._state_lock:
            if self._running:
                raise StartupError("The logger is already started")
            if self._dispatcher is not None and self._dispatcher.running:
                raise StartupError("The previous dispatcher is still finishing its batch")

            file_sink = self._open_file()
            try:
                self._cleanup(file_sink)
            except CleanupError as exc:
                if file_sink is not None:
                    file_sink.discard()
                raise StartupError(str(exc)) from exc

            self.file_sink = file_sink
            self._dispatcher = Dispatcher(
                self._queue,
                self.config,
                self.console,
                file_sink=file_sink,
                subscribers=self.subscribers,
                poll_interval=self.settings.poll_interval_seconds,
                error_backoff=self.settings.error_backoff_seconds,
            )
            self._dispatcher.start()
            self._running = True
        return self

    def _open_file(self) -> FileSink | None:
        path = self.settings.path
        if not path:
            return None
        sink = FileSink(path)
        try:
            return sink.open()
        except FileExistsError as exc:
            if sink.path.is_file():
                raise StartupError(f"Log file already exists: {path}") from exc
            raise StartupError(f"Couldn't create log file {path}: {exc}") from exc
        except OSError as exc:
            raise StartupError(f"Couldn't create log file {path}: {exc}") from exc

    def _cleanup(self, file_sink: FileSink | None) -> None:
        cutoff = self.settings.cleanup_before
        if cutoff is None or file_sink is None:
            return
        remove_stale_logs(
            file_sink.path.parent,
            cutoff,
            keep=[file_sink.path],
            strict=self.settings.strict_cleanup,
            log=self,
        )

    def stop(self) -> None:
        """
        Signal the dispatcher, give it the grace period to finish its
        current batch, then release the file. Events still queued may be
        dropped; call flush() first if they matter.
        """
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            if self._dispatcher is not None:
                self._dispatcher.stop(self.settings.grace_period_seconds)
            self.subscribers.close()
            if self.file_sink is not None:
                self.file_sink.close()

    def flush(self, timeout: float | None = None) -> bool:
        """
        Wait until every event enqueued so far has been processed.
        Returns False on timeout, or at once if nothing is draining the queue.
        """
        if not self._running:
            return self._queue.unfinished == 0
        return self._queue.join(timeout)

    @property
    def running(self) -> bool:
        return self._running

    def __enter__(self) -> "LogPipeline":
        if not self._running:
            self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # ── Configuration ─────────────────────────────────────────────

    @property
    def display_level(self) -> LogLevel:
        return self.config.display_level

    def change_level(self, level: LogLevel | int | str) -> None:
        """Console threshold. Applies from the next event processed."""
        self.config.display_level = level

    def add_blacklist(self, *strings: str) -> None:
        """Strings masked with '*' in every later message, case-insensitively."""
        self.config.add_blacklist(*strings)

    def add_level_blacklist(self, *levels: LogLevel | int | str) -> None:
        """Levels never written to the log file."""
        self.config.add_level_blacklist(*levels)

    def subscribe(self, callback: Subscriber) -> None:
        """Call `callback(event)` off-thread for every processed event."""
        self.subscribers.subscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        return self.subscribers.unsubscribe(callback)

    # ── Producer API ──────────────────────────────────────────────

    def log(
        self,
        level: LogLevel | int | str,
        template: str,
        *args: Any,
        error: BaseException | None = None,
    ) -> None:
        self._queue.put(LogEvent.create(level, template, *args, error=error))

    def none(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.NONE, template, *args, error=error)

    def fatal(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.FATAL, template, *args, error=error)

    def error(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.ERROR, template, *args, error=error)

    def warn(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.WARN, template, *args, error=error)

    def info(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.INFO, template, *args, error=error)

    def debug(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.DEBUG, template, *args, error=error)

    def debug2(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.DEBUG2, template, *args, error=error)

    def trace(self, template: str, *args: Any, error: BaseException | None = None) -> None:
        self.log(LogLevel.TRACE, template, *args, error=error)

    # ── Status ────────────────────────────────────────────────────

    def status(self) -> dict:
        snap = self.config.snapshot()
        dispatcher = self._dispatcher
        return {
            "running": self._running,
            "display_level": snap.display_level.name,
            "string_blacklist_size": len(snap.string_blacklist),
            "file_level_blacklist": sorted(level.name for level in snap.file_level_blacklist),
            "file": str(self.file_sink.path) if self.file_sink else None,
            "file_open": bool(self.file_sink and self.file_sink.is_open),
            "queued": len(self._queue),
            "processed": dispatcher.processed if dispatcher else 0,
            "sink_errors": dispatcher.sink_errors if dispatcher else 0,
            "loop_errors": dispatcher.loop_errors if dispatcher else 0,
            "subscribers": len(self.subscribers.subscribers),
            "subscriber_failures": self.subscribers.failures,
        }
