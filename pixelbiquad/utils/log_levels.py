"""Log level parsing for the ``logging.level`` setting.

The level may come from YAML (already an int or a name) or from a
``PIXELBIQUAD__LOGGING__LEVEL`` environment variable (always a string).
"""

from __future__ import annotations

import logging

# Disables the package logger entirely
LEVEL_OFF = logging.CRITICAL + 10

_NAMED_LEVELS: dict[str, int] = {
    "off": LEVEL_OFF,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def parse_log_level(value: str | int | None, default: int) -> int:
    """Turn a level number or name into a numeric level.

    Ints and digit strings are used as-is. Names are case-insensitive.
    Anything else (None, bools, blanks, unknown names) gives ``default``.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    name = str(value).strip().lower()
    if name.isdigit():
        return int(name)
    return _NAMED_LEVELS.get(name, default)
