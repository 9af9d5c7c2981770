"""Temporal biquad filter for 8-bit pixel buffers.

Every channel of every pixel is filtered independently over time:

    w[n] = x[n] + fb1*w[n-1] + fb2*w[n-2]
    y[n] = (ff0*w[n] + ff1*w[n-1] + ff2*w[n-2]) * gain

with x normalized to [0, 1]. The result is scaled back to 0..255, rounded
and passed through the range policy (clip, wrap or absolute value).

The filter reallocates and clears its state automatically whenever the
width, height or channel count of the incoming frames changes. Frames must
be fed in order from a single thread.

Example:
    filt = PixelBiquad(seed=1)
    filt.set_coeffs(0.5, 0.5, 0.0, 0.0, 0.0)
    trails = filt.process(frame)
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Sequence

import numpy as np
from pixelbiquad.diagnostics import DiagnosticKind, DiagnosticLog
from pixelbiquad.dsp.coefficients import CoefficientStore, Coefficients
from pixelbiquad.dsp.range_policy import RangePolicy, wrap_range_from_fraction
from pixelbiquad.dsp.state import StateBuffers
from pixelbiquad.frame import PixelFrame, as_frame
from pixelbiquad.typing import NDArrayInt

logger = logging.getLogger(__name__)

# w[n] is limited to avoid overflow (the bound itself is arbitrary)
STATE_LIMIT = np.float32(1.0e6)
# Per-pass offset that keeps decaying feedback out of denormal range
DENORMAL_NOISE = 1.0e-6

_SCALE = np.float32(255.0)
_HALF = np.float32(0.5)
_INT32_MIN = np.float32(np.iinfo(np.int32).min)
_INT32_MAX = np.float32(np.iinfo(np.int32).max)


class PixelBiquad:
    """Stateful second-order recursive filter applied per pixel channel."""

    def __init__(
        self,
        width: int | None = None,
        height: int | None = None,
        channels: int | None = None,
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        diagnostics: DiagnosticLog | None = None,
    ) -> None:
        """Create a filter, optionally pre-allocated for a frame shape.

        Args:
            width, height, channels: Allocate state up front when any is given
            seed: Seed for the denormal offset generator (ignored with rng)
            rng: Generator for the denormal offset
            diagnostics: Shared diagnostic log (a private one by default)
        """
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        self._coefficients = CoefficientStore(self.diagnostics)
        self._range_policy = RangePolicy()
        self._state = StateBuffers(self.diagnostics)
        self._rng = rng if rng is not None else np.random.default_rng(seed)

        if width is not None or height is not None or channels is not None:
            self.allocate(width or 0, height or 0, channels or 0)

    # ------------------------------------------------------------------
    # State lifecycle
    # ------------------------------------------------------------------

    def allocate(self, width: int, height: int, channels: int) -> bool:
        """Allocate buffers; called automatically by feed() on shape change."""
        return self._state.allocate(width, height, channels)

    def is_allocated(self) -> bool:
        return self._state.is_allocated()

    def clear(self) -> None:
        """Forget the filter history (the recovery for an unstable filter)."""
        self._state.clear()

    @property
    def width(self) -> int:
        return self._state.width

    @property
    def height(self) -> int:
        return self._state.height

    @property
    def channels(self) -> int:
        return self._state.channels

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def feed(self, frame: PixelFrame | Any) -> bool:
        """Filter one frame and advance the history.

        Returns False, leaving output and state untouched, when the frame is
        empty or its shape cannot be allocated.
        """
        frame = as_frame(frame)
        if not frame.is_allocated():
            self.diagnostics.report(
                DiagnosticKind.UNALLOCATED_INPUT,
                "incoming pixels not allocated",
                source=logger,
            )
            return False

        state = self._state
        if frame.shape != state.shape:
            logger.debug("Frame shape changed %s -> %s", state.shape, frame.shape)
            if not state.allocate(frame.width, frame.height, frame.channels):
                self.diagnostics.report(
                    DiagnosticKind.ALLOCATION_FAILED,
                    f"cannot filter {frame.width}x{frame.height}x{frame.channels} frame",
                    source=logger,
                )
                return False

        coeffs = self._coefficients.snapshot
        policy = self._range_policy
        noise = np.float32(self._rng.uniform(-DENORMAL_NOISE, DENORMAL_NOISE))

        rounded = self._evaluate(frame, coeffs, noise)
        policy.resolve_into(rounded, state.mask)
        np.copyto(state.output.reshape(-1), rounded, casting="unsafe")

        state.rotate()
        return True

    def _evaluate(self, frame: PixelFrame, coeffs: Coefficients, noise: np.float32) -> NDArrayInt:
        """Run the difference equation and return rounded, unresolved values.

        Everything is written into the state's preallocated buffers; the
        returned array is ``state.rounded``.
        """
        state = self._state
        prev = state.previous
        prev2 = state.previous2
        work = state.work
        x = state.scratch
        tmp = state.temp

        np.copyto(x, frame.flat())
        x /= _SCALE

        ff0, ff1, ff2, fb1, fb2 = (np.float32(c) for c in coeffs.as_tuple())
        gain = np.float32(coeffs.gain)

        # w[n] = clip(x + fb1*w[n-1] + fb2*w[n-2]) + noise
        np.multiply(prev, fb1, out=work)
        np.add(x, work, out=work)
        np.multiply(prev2, fb2, out=tmp)
        work += tmp
        np.clip(work, -STATE_LIMIT, STATE_LIMIT, out=work)
        work += noise

        # y[n] = (ff0*w[n] + ff1*w[n-1] + ff2*w[n-2]) * gain, reusing x
        np.multiply(work, ff0, out=x)
        np.multiply(prev, ff1, out=tmp)
        x += tmp
        np.multiply(prev2, ff2, out=tmp)
        x += tmp
        x *= gain

        # Round half up, truncating toward zero like an int cast
        x *= _SCALE
        x += _HALF
        np.trunc(x, out=x)
        # Saturate to int32; NaN becomes 0
        np.clip(x, _INT32_MIN, _INT32_MAX, out=x)
        np.isnan(x, out=state.mask)
        np.copyto(x, 0.0, where=state.mask)
        np.copyto(state.rounded, x, casting="unsafe")
        return state.rounded

    @property
    def out(self) -> PixelFrame:
        """Read-only view of the last output frame, overwritten by the next pass."""
        view = self._state.output.view()
        view.flags.writeable = False
        return PixelFrame(view)

    def process(self, frame: PixelFrame | Any) -> PixelFrame:
        """Feed one frame and return the output frame."""
        self.feed(frame)
        return self.out

    # ------------------------------------------------------------------
    # Coefficients
    # ------------------------------------------------------------------

    @property
    def coefficients(self) -> Coefficients:
        return self._coefficients.snapshot

    @property
    def gain(self) -> float:
        return self._coefficients.snapshot.gain

    def set_coeffs(self, ff0: float, ff1: float, ff2: float, fb1: float, fb2: float) -> None:
        self._coefficients.set_coeffs(ff0, ff1, ff2, fb1, fb2)

    def set_coeffs_from(self, values: Sequence[float]) -> bool:
        """Set all coefficients from a sequence of at least five values."""
        return self._coefficients.set_coeffs_from(values)

    def set_ff0(self, value: float) -> None:
        self._coefficients.set_ff0(value)

    def set_ff1(self, value: float) -> None:
        self._coefficients.set_ff1(value)

    def set_ff2(self, value: float) -> None:
        self._coefficients.set_ff2(value)

    def set_fb1(self, value: float) -> None:
        self._coefficients.set_fb1(value)

    def set_fb2(self, value: float) -> None:
        self._coefficients.set_fb2(value)

    def set_gain(self, value: float) -> None:
        """Overall output gain, applied before clipping/wrapping."""
        self._coefficients.set_gain(value)

    # ------------------------------------------------------------------
    # Range policy
    # ------------------------------------------------------------------

    @property
    def range_policy(self) -> RangePolicy:
        return self._range_policy

    def set_range_policy(self, policy: RangePolicy) -> None:
        self._range_policy = policy

    def set_wrap_positive(self, enabled: bool) -> None:
        """Wrap values above the range instead of clipping them to 255."""
        self._update_policy(wrap_positive=bool(enabled))

    def set_wrap_negative(self, enabled: bool) -> None:
        """Wrap negative values instead of clipping them to 0."""
        self._update_policy(wrap_negative=bool(enabled))

    def set_abs_value(self, enabled: bool) -> None:
        """Make negative values positive; overrides negative wrapping."""
        self._update_policy(abs_value=bool(enabled))

    def set_wrap_range(self, fraction: float) -> None:
        """Set the wrap modulus as a multiple of 256 (1.0 -> 256)."""
        self._update_policy(wrap_range=wrap_range_from_fraction(fraction))

    def _update_policy(self, **changes: Any) -> None:
        self._range_policy = dataclasses.replace(self._range_policy, **changes)
