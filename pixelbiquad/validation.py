from __future__ import annotations

import math
from typing import Any, Sequence

MAX_CHANNELS = 4
COEFFICIENT_COUNT = 5


def clamp_shape(width: int, height: int, channels: int) -> tuple[int, int, int]:
    return max(0, int(width)), max(0, int(height)), max(0, int(channels))


def validate_shape(width: int, height: int, channels: int) -> tuple[bool, str]:
    """Check a (width, height, channels) triple after clamping negatives to 0."""
    width, height, channels = clamp_shape(width, height, channels)
    size = width * height * channels
    if size == 0:
        return False, f"shape {width}x{height}x{channels} has zero size"
    if channels > MAX_CHANNELS:
        return False, f"channel count {channels} exceeds {MAX_CHANNELS}"
    return True, ""


def validate_coefficient_set(values: Sequence[Any]) -> tuple[bool, str]:
    try:
        count = len(values)
    except TypeError:
        return False, "coefficients are not a sequence"
    if count < COEFFICIENT_COUNT:
        return False, f"need {COEFFICIENT_COUNT} coefficients, got {count}"
    return True, ""


def validate_wrap_range(value: Any) -> tuple[bool, str]:
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        return False, "wrap range is not a number"
    if not math.isfinite(as_float):
        return False, "wrap range is not finite"
    return True, ""
