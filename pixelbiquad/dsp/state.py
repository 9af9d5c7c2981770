"""Filter memory for the pixel biquad.

Three equally sized float32 buffers live in a fixed three-slot arena:
``previous`` (w[n-1]), ``previous2`` (w[n-2]) and ``work`` (w[n], written
during a pass). Rotation reassigns slot indices only, so the history moves
forward one frame without copying any data.

Per-pass scratch (two float32 buffers, an int64 buffer for rounded values and
a bool mask) is sized with the arena, so a pass over a frame of unchanged
shape allocates nothing.
"""

from __future__ import annotations

import logging

import numpy as np
from pixelbiquad.diagnostics import DiagnosticKind, DiagnosticLog
from pixelbiquad.typing import NDArrayBool, NDArrayFloat, NDArrayInt, NDArrayUInt8
from pixelbiquad.validation import clamp_shape, validate_shape

logger = logging.getLogger(__name__)


class StateBuffers:
    """Owns the filter history, the output frame and the current shape."""

    def __init__(self, diagnostics: DiagnosticLog | None = None) -> None:
        self._diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        self._arena: list[NDArrayFloat] = []
        # Slot indices into the arena
        self._work = 0
        self._prev = 1
        self._prev2 = 2
        self.output: NDArrayUInt8 = np.zeros((0, 0, 0), dtype=np.uint8)
        self.scratch: NDArrayFloat = np.zeros(0, dtype=np.float32)
        self.temp: NDArrayFloat = np.zeros(0, dtype=np.float32)
        self.rounded: NDArrayInt = np.zeros(0, dtype=np.int64)
        self.mask: NDArrayBool = np.zeros(0, dtype=bool)
        self.width = 0
        self.height = 0
        self.channels = 0
        self._allocated = False

    @property
    def size(self) -> int:
        return self.width * self.height * self.channels

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.width, self.height, self.channels

    @property
    def work(self) -> NDArrayFloat:
        return self._arena[self._work]

    @property
    def previous(self) -> NDArrayFloat:
        return self._arena[self._prev]

    @property
    def previous2(self) -> NDArrayFloat:
        return self._arena[self._prev2]

    def is_allocated(self) -> bool:
        return self._allocated

    def allocate(self, width: int, height: int, channels: int) -> bool:
        """(Re)allocate all buffers for a new shape and clear the history.

        Returns False and keeps the existing allocation when the shape has
        zero size or more than four channels.
        """
        width, height, channels = clamp_shape(width, height, channels)
        ok, reason = validate_shape(width, height, channels)
        if not ok:
            self._diagnostics.report(
                DiagnosticKind.INVALID_SHAPE,
                f"{reason}, not allocating",
                source=logger,
                width=width,
                height=height,
                channels=channels,
            )
            return False

        size = width * height * channels
        # Build everything first so a failure cannot leave a mixed state
        arena = [np.empty(size, dtype=np.float32) for _ in range(3)]
        output = np.zeros((height, width, channels), dtype=np.uint8)
        scratch = np.empty(size, dtype=np.float32)
        temp = np.empty(size, dtype=np.float32)
        rounded = np.empty(size, dtype=np.int64)
        mask = np.empty(size, dtype=bool)

        self._arena = arena
        self._work, self._prev, self._prev2 = 0, 1, 2
        self.output = output
        self.scratch, self.temp, self.rounded, self.mask = scratch, temp, rounded, mask
        self.width, self.height, self.channels = width, height, channels
        self._allocated = True
        logger.debug("Allocated filter state for %dx%dx%d", width, height, channels)

        self.clear()
        return True

    def clear(self) -> None:
        """Zero the two history buffers; the work buffer is overwritten next pass anyway."""
        if not self._allocated:
            return
        self.previous.fill(0.0)
        self.previous2.fill(0.0)

    def rotate(self) -> None:
        """Work becomes previous, previous becomes previous2, previous2 is reused as work."""
        self._work, self._prev, self._prev2 = self._prev2, self._work, self._prev
