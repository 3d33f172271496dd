"""
Background dispatcher: drains the event queue and feeds the sinks.

One iteration:
  1. drain the queue (blocks up to poll_interval)
  2. for each event, in order:
       render once (redacted) → console if visible → notify subscribers
       → file unless the level is file-blacklisted
  3. mark processed

Fault containment: a file write failure becomes a FATAL event on the same
queue. Anything else that escapes an event is caught at the loop: that
event is skipped, the rest of its batch goes back to the queue front, an
ERROR event describes the failure, and the loop backs off before resuming.
Only stop() ends the loop.
"""

from __future__ import annotations

import threading

from logpipe.config import RuntimeConfig
from logpipe.event_queue import EventQueue
from logpipe.records import LogEvent, LogLevel
from logpipe.sinks import ConsoleSink, FileSink, SubscriberSink

FILE_WRITE_FAILED = "Couldn't write log to file: {}"
LOOP_FAILED = "An exception occurred while trying to display a log message"


class Dispatcher:
    """The single consumer of an EventQueue."""

    def __init__(
        self,
        queue: EventQueue,
        config: RuntimeConfig,
        console: ConsoleSink,
        file_sink: FileSink | None = None,
        subscribers: SubscriberSink | None = None,
        poll_interval: float = 0.05,
        error_backoff: float = 1.0,
    ):
        self._queue = queue
        self._config = config
        self.console = console
        self.file_sink = file_sink
        self.subscribers = subscribers
        self.poll_interval = poll_interval
        self.error_backoff = error_backoff

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

        self.processed = 0
        self.sink_errors = 0
        self.loop_errors = 0

    # ── Thread control ────────────────────────────────────────────

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Dispatcher is already running")
        self._stop.clear()
        self._queue.reopen()
        self._thread = threading.Thread(
            target=self._run, name="logpipe-dispatcher", daemon=True
        )
        self._thread.start()

    def stop(self, grace_period: float = 0.5) -> bool:
        """
        Ask the loop to exit and wait up to `grace_period` for it.
        Returns True if the thread has finished.
        """
        self._stop.set()
        self._queue.close()
        thread = self._thread
        if thread is None:
            return True
        thread.join(grace_period)
        finished = not thread.is_alive()
        if finished:
            self._thread = None
        return finished

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    # ── Loop ──────────────────────────────────────────────────────

    def _run(self) -> None:
        while not self._stop.is_set():
            batch = self._queue.drain(self.poll_interval)
            if batch:
                self.process_batch(batch)

    def process_batch(self, batch: list[LogEvent]) -> None:
        """Process a drained batch FIFO, recovering from per-event failures."""
        for index, event in enumerate(batch):
            try:
                self.process(event)
            except Exception as exc:
                self._queue.push_front(batch[index + 1:])
                self._report_failure(event, exc)
                self._queue.task_done()
                self._stop.wait(self.error_backoff)
                return
            self._queue.task_done()

    def _report_failure(self, event: LogEvent, exc: Exception) -> None:
        self.loop_errors += 1
        # A failure report that itself fails is not reported again
        if not event.internal:
            self._queue.put(
                LogEvent.create(LogLevel.ERROR, LOOP_FAILED, error=exc, internal=True)
            )

    # ── One event ─────────────────────────────────────────────────

    def process(self, event: LogEvent) -> None:
        snap = self._config.snapshot()
        event.render(snap.string_blacklist)

        if snap.console_visible(event.level):
            self.console.emit(event)

        self._notify(event)

        if self.file_sink is not None and snap.file_visible(event.level):
            self._write_file(event)

        self.processed += 1

    def _notify(self, event: LogEvent) -> None:
        if self.subscribers is None:
            return
        try:
            self.subscribers.emit(event)
        except Exception:
            # Subscribers must never stall or break draining
            self.sink_errors += 1

    def _write_file(self, event: LogEvent) -> None:
        try:
            self.file_sink.emit(event)
        except Exception as exc:
            self.sink_errors += 1
            if event.internal:
                return
            self._queue.put(
                LogEvent.create(
                    LogLevel.FATAL, FILE_WRITE_FAILED, exc, error=exc, internal=True
                )
            )
