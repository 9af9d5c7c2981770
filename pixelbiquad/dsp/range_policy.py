"""Out-of-range handling for filtered channel values.

After rounding, a filtered value is an arbitrary signed integer. The range
policy maps it back into [0, 255] by clipping, wrapping modulo ``wrap_range``
or taking the absolute value. The three flags are independent; the
(wrap_positive, wrap_negative, abs_value) tuple selects one of six modes
from an explicit table:

    wrap+  wrap-  abs   mode
    F      F      F     CLIP            clamp(v)
    T      F      F     WRAP_POSITIVE   clamp(max(0, v) % r)
    F      *      T     ABS             clamp(|v|)
    T      *      T     ABS_WRAP        clamp(|v| % r)
    T      T      F     WRAP_BOTH       clamp(v % r, shifted by r when negative)
    F      T      F     WRAP_NEGATIVE   clamp(v % r + r if v < 0 else v)

``%`` is the truncating remainder (sign follows the dividend), not Python's
floor modulo. WRAP_NEGATIVE therefore maps -r to r, which clamps to 255.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import numpy as np
from pixelbiquad.typing import NDArrayBool, NDArrayInt

DEFAULT_WRAP_RANGE = 256
CHANNEL_MAX = 255
# Rounded values are saturated to int32, so a larger modulus never wraps
WRAP_RANGE_MAX = 2**31 - 1


class RangeMode(str, Enum):
    CLIP = "clip"
    WRAP_POSITIVE = "wrap_positive"
    ABS = "abs"
    ABS_WRAP = "abs_wrap"
    WRAP_BOTH = "wrap_both"
    WRAP_NEGATIVE = "wrap_negative"


# Keyed by (wrap_positive, wrap_negative, abs_value)
_MODE_TABLE: dict[tuple[bool, bool, bool], RangeMode] = {
    (False, False, False): RangeMode.CLIP,
    (True, False, False): RangeMode.WRAP_POSITIVE,
    (False, False, True): RangeMode.ABS,
    (False, True, True): RangeMode.ABS,
    (True, False, True): RangeMode.ABS_WRAP,
    (True, True, True): RangeMode.ABS_WRAP,
    (True, True, False): RangeMode.WRAP_BOTH,
    (False, True, False): RangeMode.WRAP_NEGATIVE,
}


def wrap_range_from_fraction(value: float) -> int:
    """Convert a multiplier of 256 into a wrap modulus in [1, WRAP_RANGE_MAX].

    Out-of-range and non-finite inputs saturate: +inf gives WRAP_RANGE_MAX,
    -inf and NaN give 1.
    """
    scaled = float(value) * 256.0 + 0.5
    if math.isnan(scaled) or scaled < 1.0:
        return 1
    if scaled >= WRAP_RANGE_MAX:
        return WRAP_RANGE_MAX
    # Round half up as the int cast truncates toward zero
    return int(scaled)


# Resolvers work in place on an int64 buffer; mask is bool scratch of the same length.


def _clip(v: NDArrayInt, r: int, mask: NDArrayBool) -> None:
    np.clip(v, 0, CHANNEL_MAX, out=v)


def _wrap_positive(v: NDArrayInt, r: int, mask: NDArrayBool) -> None:
    # Negatives clip to 0 before wrapping
    np.maximum(v, 0, out=v)
    np.fmod(v, r, out=v)
    np.minimum(v, CHANNEL_MAX, out=v)


def _abs(v: NDArrayInt, r: int, mask: NDArrayBool) -> None:
    np.abs(v, out=v)
    np.minimum(v, CHANNEL_MAX, out=v)


def _abs_wrap(v: NDArrayInt, r: int, mask: NDArrayBool) -> None:
    np.abs(v, out=v)
    np.fmod(v, r, out=v)
    np.minimum(v, CHANNEL_MAX, out=v)


def _wrap_both(v: NDArrayInt, r: int, mask: NDArrayBool) -> None:
    np.fmod(v, r, out=v)
    np.less(v, 0, out=mask)
    np.add(v, r, out=v, where=mask)
    np.minimum(v, CHANNEL_MAX, out=v)


def _wrap_negative(v: NDArrayInt, r: int, mask: NDArrayBool) -> None:
    np.less(v, 0, out=mask)
    np.fmod(v, r, out=v, where=mask)
    np.add(v, r, out=v, where=mask)
    np.clip(v, 0, CHANNEL_MAX, out=v)


_RESOLVERS: dict[RangeMode, Callable[[NDArrayInt, int, NDArrayBool], None]] = {
    RangeMode.CLIP: _clip,
    RangeMode.WRAP_POSITIVE: _wrap_positive,
    RangeMode.ABS: _abs,
    RangeMode.ABS_WRAP: _abs_wrap,
    RangeMode.WRAP_BOTH: _wrap_both,
    RangeMode.WRAP_NEGATIVE: _wrap_negative,
}


@dataclass(frozen=True)
class RangePolicy:
    """Immutable range resolution settings."""

    wrap_positive: bool = False
    wrap_negative: bool = False
    abs_value: bool = False
    wrap_range: int = DEFAULT_WRAP_RANGE

    def __post_init__(self) -> None:
        if not 1 <= self.wrap_range <= WRAP_RANGE_MAX:
            raise ValueError(
                f"wrap_range must be in [1, {WRAP_RANGE_MAX}], got {self.wrap_range}"
            )

    @property
    def mode(self) -> RangeMode:
        return _MODE_TABLE[(bool(self.wrap_positive), bool(self.wrap_negative), bool(self.abs_value))]

    def resolve_into(self, values: NDArrayInt, mask: NDArrayBool) -> None:
        """Resolve an int64 buffer of rounded values into [0, 255] in place."""
        _RESOLVERS[self.mode](values, self.wrap_range, mask)

    def resolve_array(self, values: NDArrayInt) -> NDArrayInt:
        """Resolve a copy of ``values`` and return it."""
        v = np.array(values, dtype=np.int64)
        self.resolve_into(v, np.empty(v.shape, dtype=bool))
        return v

    def resolve(self, value: int) -> int:
        return int(self.resolve_array(np.array([value], dtype=np.int64))[0])
