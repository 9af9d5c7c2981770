"""Diagnostic reporting for filter instances.

Nothing in the filter core raises across its boundary. Rejected shapes,
empty input frames and short coefficient lists are reported here and then
absorbed, leaving the filter state as it was. Each filter owns one
DiagnosticLog; callers can inspect it, subscribe to it, or just watch the
``pixelbiquad`` loggers.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    INVALID_SHAPE = "invalid_shape"
    UNALLOCATED_INPUT = "unallocated_input"
    INVALID_COEFFICIENT_SET = "invalid_coefficient_set"
    ALLOCATION_FAILED = "allocation_failed"


@dataclass
class Diagnostic:
    """A single reported problem."""

    kind: DiagnosticKind
    message: str
    timestamp: float
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


class DiagnosticLog:
    """Bounded history of diagnostics with per-kind counters.

    Not thread-safe; it shares the single-threaded contract of the filter
    that owns it.
    """

    def __init__(self, maxlen: int = 256, clock: Callable[[], float] = time.time) -> None:
        self._events: deque[Diagnostic] = deque(maxlen=maxlen)
        self._counts: dict[DiagnosticKind, int] = {}
        self._subscribers: list[Callable[[Diagnostic], None]] = []
        self._clock = clock

    def report(
        self,
        kind: DiagnosticKind,
        message: str,
        source: logging.Logger | None = None,
        **details: Any,
    ) -> Diagnostic:
        """Record a diagnostic, log it at WARNING and notify subscribers."""
        event = Diagnostic(kind=kind, message=message, timestamp=self._clock(), details=details)
        self._events.append(event)
        self._counts[kind] = self._counts.get(kind, 0) + 1

        (source or logger).warning("%s: %s", kind.value, message)

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Diagnostic subscriber %r failed", callback)
        return event

    def subscribe(self, callback: Callable[[Diagnostic], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Diagnostic], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def count(self, kind: DiagnosticKind | None = None) -> int:
        if kind is None:
            return sum(self._counts.values())
        return self._counts.get(kind, 0)

    @property
    def last(self) -> Diagnostic | None:
        return self._events[-1] if self._events else None

    def recent(self, limit: int | None = None) -> list[Diagnostic]:
        events = list(self._events)
        if limit is not None:
            events = events[max(len(events) - limit, 0):]
        return events

    def clear(self) -> None:
        self._events.clear()
        self._counts.clear()

    def __len__(self) -> int:
        return len(self._events)
