"""
Case-insensitive substring masking.

Each blacklist entry is applied in turn to the output of the previous one,
so overlapping entries resolve in blacklist order.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable

MASK_CHAR = "*"


@lru_cache(maxsize=256)
def _pattern(entry: str) -> re.Pattern[str]:
    return re.compile(re.escape(entry), re.IGNORECASE)


def redact(text: str, blacklist: Iterable[str], mask: str = MASK_CHAR) -> str:
    """
    Replace every case-insensitive occurrence of each blacklist entry with
    a run of `mask` as long as the matched text.

    Example:
        redact("token SECRET123", ["secret"])  →  "token ******123"
    """
    for entry in blacklist:
        if not entry or not text:
            continue
        text = _pattern(entry).sub(lambda m: mask * len(m.group(0)), text)
    return text
