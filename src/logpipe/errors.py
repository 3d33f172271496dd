"""
Pipeline exceptions.

Only StartupError (and CleanupError in strict mode, escalated to
StartupError) ever reaches the caller. Sink and loop failures are
reported as log events through the pipeline itself.
"""


class PipelineError(Exception):
    """Base class for logpipe errors."""


class StartupError(PipelineError):
    """Pipeline already running, or the log file cannot be created."""


class CleanupError(PipelineError):
    """A stale log file could not be deleted."""

    def __init__(self, path, cause: BaseException):
        super().__init__(f"Failed to delete {path}: {cause}")
        self.path = path
        self.cause = cause


class SinkError(PipelineError):
    """A sink failed to write an event."""

    def __init__(self, sink_name: str, cause: BaseException):
        super().__init__(f"Sink '{sink_name}' failed: {cause}")
        self.sink_name = sink_name
        self.cause = cause
