"""Rate limiting for per-frame diagnostics.

A filter fed at video rate can report the same problem (an empty frame, an
unsupported channel count) thirty or more times per second. The sampling
filter lets the first few records of each window through and counts the
rest, so the log shows how much was dropped without flooding.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable


@dataclass(frozen=True)
class LogSamplingRule:
    """Sampling rule for loggers matching a prefix."""

    prefix: str
    max_per_interval: int
    interval_s: float


@dataclass
class _Window:
    start: float
    passed: int = 0
    suppressed: int = 0


class LogSamplingFilter(logging.Filter):
    """Rate-limit log records for noisy logger prefixes.

    Sampling only applies to records at or below max_level. Records above it
    are always allowed through. The first record let through after a window
    with drops gets a ``suppressed`` attribute and a note appended to its
    message.
    """

    def __init__(
        self,
        rules: Iterable[LogSamplingRule],
        max_level: int = logging.WARNING,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        # Longest prefix first
        self._rules = tuple(sorted(rules, key=lambda r: len(r.prefix), reverse=True))
        self._max_level = max_level
        self._clock = clock
        self._windows: dict[tuple[str, int], _Window] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno > self._max_level:
            return True

        rule = self._match_rule(record.name)
        if rule is None:
            return True

        now = self._clock()
        key = (record.name, record.levelno)
        window = self._windows.get(key)

        if window is None or now - window.start >= rule.interval_s:
            dropped = window.suppressed if window is not None else 0
            self._windows[key] = _Window(start=now, passed=1)
            if dropped:
                record.suppressed = dropped
                record.msg = f"{record.msg} ({dropped} similar messages suppressed)"
            return True

        if window.passed < rule.max_per_interval:
            window.passed += 1
            return True

        window.suppressed += 1
        return False

    def suppressed_count(self, logger_name: str, level: int) -> int:
        window = self._windows.get((logger_name, level))
        return window.suppressed if window is not None else 0

    def _match_rule(self, logger_name: str) -> LogSamplingRule | None:
        for rule in self._rules:
            if logger_name.startswith(rule.prefix):
                return rule
        return None
