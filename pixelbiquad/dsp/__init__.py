"""Filtering engine: coefficients, range policy, state buffers and the filter."""

from pixelbiquad.dsp.biquad import PixelBiquad
from pixelbiquad.dsp.coefficients import CoefficientStore, Coefficients
from pixelbiquad.dsp.range_policy import RangeMode, RangePolicy, wrap_range_from_fraction
from pixelbiquad.dsp.state import StateBuffers

__all__ = [
    "CoefficientStore",
    "Coefficients",
    "PixelBiquad",
    "RangeMode",
    "RangePolicy",
    "StateBuffers",
    "wrap_range_from_fraction",
]
