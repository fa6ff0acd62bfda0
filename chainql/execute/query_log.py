"""Optional query log written before every execution.

When enabled, each statement is written to a caller-supplied text stream as::

    Timestamp: 2026-10-18T12:00:00.000000+00:00
    Query: SELECT * FROM users WHERE id = ?
    Bindings:  42

A failing stream never fails the query; the failure is reported through the
module logger instead.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any, TextIO

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueryLog:
    """Formats and writes executed statements to a text stream.

    Args:
        clock: Returns the timestamp for each entry.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._stream: TextIO | None = None
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._stream is not None

    def enable(self, stream: TextIO) -> None:
        """Start writing entries to ``stream``."""
        self._stream = stream

    def disable(self) -> None:
        """Stop writing entries."""
        self._stream = None

    def format(self, sql: str, bindings: Sequence[Any]) -> str:
        """Return the log block for one statement."""
        values = "".join(f" {b}" for b in bindings)
        return (
            f"Timestamp: {self._clock().isoformat()}\n"
            f"Query: {sql} \n"
            f"Bindings: {values} \n\n"
        )

    def write(self, sql: str, bindings: Sequence[Any]) -> None:
        """Write one entry if enabled.  Stream errors are logged, not raised."""
        logger.debug("Executing %s with bindings %r", sql, tuple(bindings))
        stream = self._stream
        if stream is None:
            return
        try:
            stream.write(self.format(sql, bindings))
        except (OSError, ValueError) as exc:
            logger.warning("Query log write failed: %s", exc)
