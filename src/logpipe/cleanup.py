"""
Pre-start removal of old log files.

Runs once, before the dispatcher starts: every regular file in the log
directory created before the cutoff is deleted. Deletions and failures are
reported through the pipeline that is starting up, so they land in the
fresh log file.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Protocol

from logpipe.errors import CleanupError


class _Reporter(Protocol):
    def debug(self, template: str, *args, error: BaseException | None = None) -> None: ...
    def error(self, template: str, *args, error: BaseException | None = None) -> None: ...


def creation_time(path: str | Path) -> float:
    """
    File creation time as a POSIX timestamp. Uses st_birthtime where the
    platform has it; otherwise st_ctime (creation time on Windows, last
    metadata change on most Unix filesystems).
    """
    st = os.stat(path)
    return getattr(st, "st_birthtime", st.st_ctime)


def remove_stale_logs(
    directory: str | Path,
    cutoff: datetime,
    *,
    keep: Iterable[str | Path] = (),
    strict: bool = False,
    log: _Reporter | None = None,
) -> list[Path]:
    """
    Delete files in `directory` created before `cutoff`.

    Args:
        directory: Directory to sweep (not recursive)
        cutoff: Naive datetimes are taken as local time
        keep: Paths never deleted (the log file just opened)
        strict: Raise CleanupError on the first failed deletion instead of
            reporting it and moving on
        log: Receives "<name> deleted" at DEBUG and failures at ERROR

    Returns:
        Paths that were deleted.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    threshold = cutoff.timestamp()
    protected = {Path(p).resolve() for p in keep}
    removed: list[Path] = []

    for entry in sorted(directory.iterdir()):
        try:
            if not entry.is_file() or entry.resolve() in protected:
                continue
            if creation_time(entry) >= threshold:
                continue
            entry.unlink()
        except OSError as exc:
            if strict:
                raise CleanupError(entry, exc) from exc
            if log is not None:
                log.error("Couldn't delete log file {}", str(entry), error=exc)
            continue

        removed.append(entry)
        if log is not None:
            log.debug("{} deleted", entry.name)

    return removed
