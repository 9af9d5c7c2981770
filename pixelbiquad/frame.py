"""Pixel buffer wrapper used at the filter boundary.

A PixelFrame is a row-major ``uint8`` array with interleaved channels,
always stored as ``(height, width, channels)``. Two-dimensional arrays are
treated as single-channel images.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from pixelbiquad.typing import NDArrayUInt8


class PixelFrame:
    """8-bit image buffer with explicit width, height and channel count."""

    __slots__ = ("_data",)

    def __init__(self, data: Any = None) -> None:
        if data is None:
            self._data: NDArrayUInt8 = np.zeros((0, 0, 0), dtype=np.uint8)
            return

        arr = np.asarray(data)
        if arr.dtype != np.uint8:
            raise TypeError(f"pixel data must be uint8, got {arr.dtype}")
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        elif arr.ndim != 3:
            raise ValueError(f"pixel data must be 2-D or 3-D, got {arr.ndim}-D")
        self._data = arr

    @classmethod
    def empty(cls) -> PixelFrame:
        return cls()

    @classmethod
    def allocate(cls, width: int, height: int, channels: int) -> PixelFrame:
        return cls(np.zeros((max(0, height), max(0, width), max(0, channels)), dtype=np.uint8))

    @property
    def data(self) -> NDArrayUInt8:
        return self._data

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def channels(self) -> int:
        return int(self._data.shape[2])

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.width, self.height, self.channels

    @property
    def size(self) -> int:
        return int(self._data.size)

    def is_allocated(self) -> bool:
        return self._data.size > 0

    def flat(self) -> NDArrayUInt8:
        """Contiguous 1-D view (or copy, for strided input) of the channel values."""
        return np.ascontiguousarray(self._data).reshape(-1)

    def copy(self) -> PixelFrame:
        return PixelFrame(self._data.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelFrame):
            return NotImplemented
        return self._data.shape == other._data.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelFrame(width={self.width}, height={self.height}, channels={self.channels})"


def as_frame(obj: Any) -> PixelFrame:
    """Coerce a PixelFrame, uint8 array or None into a PixelFrame."""
    if isinstance(obj, PixelFrame):
        return obj
    return PixelFrame(obj)
