"""Recurrence coefficients for the pixel biquad.

    w[n] = x[n] + fb1*w[n-1] + fb2*w[n-2]
    y[n] = (ff0*w[n] + ff1*w[n-1] + ff2*w[n-2]) * gain

ff0, ff1 and ff2 form the feedforward section, fb1 and fb2 the feedback
section. Values are never range checked: feedback coefficients can make the
filter diverge, and clearing the filter is the only recovery.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from pixelbiquad.diagnostics import DiagnosticKind, DiagnosticLog
from pixelbiquad.validation import COEFFICIENT_COUNT, validate_coefficient_set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coefficients:
    """Immutable snapshot of the five coefficients and the output gain."""

    ff0: float = 1.0
    ff1: float = 0.0
    ff2: float = 0.0
    fb1: float = 0.0
    fb2: float = 0.0
    gain: float = 1.0

    def as_tuple(self) -> tuple[float, float, float, float, float]:
        return self.ff0, self.ff1, self.ff2, self.fb1, self.fb2


class CoefficientStore:
    """Holds the current Coefficients snapshot.

    Every setter replaces the snapshot, so a filtering pass that grabbed
    ``snapshot`` at its start never observes a half-applied update.
    """

    def __init__(self, diagnostics: DiagnosticLog | None = None) -> None:
        self._snapshot = Coefficients()
        self._diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()

    @property
    def snapshot(self) -> Coefficients:
        return self._snapshot

    def set_coeffs(self, ff0: float, ff1: float, ff2: float, fb1: float, fb2: float) -> None:
        self._replace(ff0=ff0, ff1=ff1, ff2=ff2, fb1=fb1, fb2=fb2)

    def set_coeffs_from(self, values: Sequence[Any]) -> bool:
        """Set all five coefficients from a sequence; extra values are ignored."""
        ok, reason = validate_coefficient_set(values)
        if not ok:
            self._diagnostics.report(
                DiagnosticKind.INVALID_COEFFICIENT_SET,
                reason,
                source=logger,
                expected=COEFFICIENT_COUNT,
            )
            return False
        ff0, ff1, ff2, fb1, fb2 = (float(v) for v in list(values)[:COEFFICIENT_COUNT])
        self.set_coeffs(ff0, ff1, ff2, fb1, fb2)
        return True

    def set_ff0(self, value: float) -> None:
        self._replace(ff0=value)

    def set_ff1(self, value: float) -> None:
        self._replace(ff1=value)

    def set_ff2(self, value: float) -> None:
        self._replace(ff2=value)

    def set_fb1(self, value: float) -> None:
        self._replace(fb1=value)

    def set_fb2(self, value: float) -> None:
        self._replace(fb2=value)

    def set_gain(self, value: float) -> None:
        self._replace(gain=value)

    def _replace(self, **changes: float) -> None:
        self._snapshot = dataclasses.replace(
            self._snapshot, **{k: float(v) for k, v in changes.items()}
        )
