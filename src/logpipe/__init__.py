"""
logpipe: in-process asynchronous log pipeline.

Producers enqueue events; one background dispatcher renders positional
"{}" templates, masks blacklisted strings, and writes to the console,
a log file, and subscriber callbacks.
"""

from logpipe.core import LogPipeline
from logpipe.records import LogEvent, LogLevel, level_label
from logpipe.config import PipelineSettings, RuntimeConfig, ConfigSnapshot
from logpipe.template import ArgKind, Segment, Style, arg_kind, render, render_text
from logpipe.redact import redact
from logpipe.event_queue import EventQueue
from logpipe.sinks import LogSink, ConsoleSink, FileSink, SubscriberSink
from logpipe.formatters import LogFormatter, LineFormatter, ConsoleFormatter
from logpipe.bridge import PipelineHandler, log_external, map_severity
from logpipe.errors import PipelineError, StartupError, CleanupError, SinkError

__all__ = [
    "LogPipeline",
    "LogEvent",
    "LogLevel",
    "level_label",
    "PipelineSettings",
    "RuntimeConfig",
    "ConfigSnapshot",
    "ArgKind",
    "Segment",
    "Style",
    "arg_kind",
    "render",
    "render_text",
    "redact",
    "EventQueue",
    "LogSink",
    "ConsoleSink",
    "FileSink",
    "SubscriberSink",
    "LogFormatter",
    "LineFormatter",
    "ConsoleFormatter",
    "PipelineHandler",
    "log_external",
    "map_severity",
    "PipelineError",
    "StartupError",
    "CleanupError",
    "SinkError",
]
