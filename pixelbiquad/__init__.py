from pixelbiquad.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLog
from pixelbiquad.dsp import Coefficients, PixelBiquad, RangeMode, RangePolicy
from pixelbiquad.frame import PixelFrame, as_frame

__all__ = [
    "__version__",
    "Coefficients",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticLog",
    "PixelBiquad",
    "PixelFrame",
    "RangeMode",
    "RangePolicy",
    "as_frame",
]

__version__ = "0.1.0"
