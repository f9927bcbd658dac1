"""NDJSON lifecycle events on stderr, and command timing."""

from __future__ import annotations

import sys
import time
from datetime import datetime, timezone
from typing import Any

import orjson


class Timer:
    """Wall time of a ``with`` block, in whole milliseconds."""

    def __enter__(self) -> "Timer":
        self.elapsed_ms = 0
        self._started_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.elapsed_ms = (time.perf_counter_ns() - self._started_ns) // 1_000_000


class EventEmitter:
    """Writes one JSON object per event to stderr while ``enabled``.

    Events: ``settings.loaded``, ``render.completed``, ``render.failed``,
    ``config.written``, ``config.unchanged``. stdout stays reserved for the
    response envelope.
    """

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled

    def emit(self, event: str, data: dict[str, Any] | None = None) -> None:
        if not self.enabled:
            return
        line = orjson.dumps(
            {"event": event, "timestamp": datetime.now(timezone.utc), "data": data or {}},
            default=str,
        )
        stream = sys.stderr
        stream.write(line.decode() + "\n")
        stream.flush()


_emitter = EventEmitter()


def get_emitter() -> EventEmitter:
    """The process-wide emitter toggled by the CLI's ``--events`` flag."""
    return _emitter
