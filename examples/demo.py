"""
logpipe demo.

Shows templated, redacted, colorized console output, a plain log file,
a subscriber, and the stdlib logging bridge.

Run:
    python examples/demo.py
"""

import logging
import tempfile
from pathlib import Path

from logpipe import LogLevel, LogPipeline, PipelineHandler


def main():
    log_path = Path(tempfile.mkdtemp()) / "demo.log"

    with LogPipeline.start_logger(log_path, LogLevel.DEBUG2) as log:
        log.add_blacklist("hunter2")
        log.add_level_blacklist(LogLevel.TRACE)

        seen = []
        log.subscribe(lambda event: seen.append(event.level))

        log.info("Loaded {} rows from {}", 120, "prices.csv")
        log.debug("Login as {} with password {}", "ada", "Hunter2")
        log.warn("Cache hit ratio {} below {}", 0.42, 0.5)
        log.trace("not shown on console, not written to file")
        log.info("Unfilled placeholders stay literal: {} and {}", "one")

        try:
            1 / 0
        except ZeroDivisionError as exc:
            log.error("Division failed for batch {}", 7, error=exc)

        stdlib = logging.getLogger("demo")
        stdlib.addHandler(PipelineHandler(log))
        stdlib.setLevel(logging.DEBUG)
        stdlib.warning("routed from stdlib logging", extra={"event_id": 3})

        log.flush(5)

    print("\n--- file contents ---")
    print(log_path.read_text(encoding="utf-8"))
    print(f"subscriber saw {len(seen)} events")


if __name__ == "__main__":
    main()
