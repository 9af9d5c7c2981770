"""Utility modules for PixelBiquad."""

from pixelbiquad.utils.log_levels import LEVEL_OFF, parse_log_level
from pixelbiquad.utils.log_sampling import LogSamplingFilter, LogSamplingRule

__all__ = [
    "LEVEL_OFF",
    "LogSamplingFilter",
    "LogSamplingRule",
    "parse_log_level",
]
