"""Shared pytest fixtures for PixelBiquad tests."""

import numpy as np
import pytest

from pixelbiquad import PixelBiquad, PixelFrame


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator for test data."""
    return np.random.default_rng(1234)


@pytest.fixture
def make_frame(rng: np.random.Generator):
    """Factory for random uint8 frames."""
    def _make(width: int, height: int, channels: int = 3) -> PixelFrame:
        data = rng.integers(0, 256, size=(height, width, channels), dtype=np.uint8)
        return PixelFrame(data)

    return _make


@pytest.fixture
def identity_filter() -> PixelBiquad:
    """Filter with default (pass-through) coefficients."""
    return PixelBiquad(seed=7)


@pytest.fixture
def echo_filter() -> PixelBiquad:
    """Filter with feedback, so history visibly affects the output."""
    filt = PixelBiquad(seed=7)
    filt.set_coeffs(0.6, 0.3, 0.1, 0.5, -0.2)
    return filt
