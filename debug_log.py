"""Level-gated diagnostic records, buffered per batch item."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

LOGGER = logging.getLogger(__name__)

# 0: every URI the pipeline follows
# 1: step digest of the resolved DocMap
# 2: the full DocMap document
LEVEL_TRACE = 0
LEVEL_STEPS = 1
LEVEL_DOCUMENT = 2
KNOWN_LEVELS: frozenset[int] = frozenset({LEVEL_TRACE, LEVEL_STEPS, LEVEL_DOCUMENT})


@dataclass(frozen=True, slots=True)
class DebugRecord:
    """One diagnostic line for a batch item at a given debug level."""

    level: int
    item: str
    message: str
    data: Any = None

    def render(self) -> str:
        """Format the record for the log, JSON-encoding structured data."""
        text = f"[debug {self.level}] {self.item}: {self.message}"
        if self.data is None:
            return text
        if isinstance(self.data, str):
            return f"{text}: {self.data}"
        return f"{text}\n{json.dumps(self.data, indent=2, default=str)}"


class DebugLog:
    """Append-only store of debug records.

    Concurrent pipeline runs write here as they go; ``flush`` then writes one
    item's records in order so traces of different items never interleave.
    """

    def __init__(self) -> None:
        self._records: list[DebugRecord] = []

    def record(self, level: int, item: str, message: str, data: Any = None) -> DebugRecord:
        """Append a record and return it."""
        entry = DebugRecord(level=level, item=item, message=message, data=data)
        self._records.append(entry)
        return entry

    def records(self, item: str | None = None) -> list[DebugRecord]:
        """Return the records of ``item``, or every record when ``item`` is None."""
        if item is None:
            return list(self._records)
        return [r for r in self._records if r.item == item]

    def flush(self, item: str) -> int:
        """Log every record of ``item`` and return how many were written."""
        records = self.records(item)
        for entry in records:
            LOGGER.info("%s", entry.render())
        return len(records)


def parse_levels(raw: str | None, default: frozenset[int]) -> frozenset[int]:
    """Parse a comma-separated level list such as ``"0,2"``."""
    if raw is None or not raw.strip():
        return default

    levels: set[int] = set()
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            level = int(token)
        except ValueError as exc:
            raise ValueError(f"Invalid debug level: {token!r}") from exc
        if level not in KNOWN_LEVELS:
            raise ValueError(f"Unknown debug level {level}; expected one of {sorted(KNOWN_LEVELS)}")
        levels.add(level)
    return frozenset(levels)
