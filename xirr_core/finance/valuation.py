# xirr_core/finance/valuation.py
"""
NPV of a dated cash-flow series and its first derivative w.r.t. the rate.

    value(r)      = sum_i  a_i / (1+r)^t_i
    derivative(r) = sum_i -a_i * t_i / (1+r)^(t_i+1)

t_i are year fractions (actual/365). Defined only for r > -1.
Overflow does not raise: callers get inf/nan and decide what to do with it.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence, Tuple

import numpy as np

from .cashflow import CashFlowSeries, _coerce, year_fractions
from .errors import DomainViolation


class ValuationFunction:
    """Closed unit over fixed (amount, offset) coefficients. No mutable state."""

    __slots__ = ("_amounts", "_offsets", "_weighted")

    def __init__(self, amounts: Sequence[float], offsets: Sequence[float]) -> None:
        a = np.array(amounts, dtype=np.float64)
        t = np.array(offsets, dtype=np.float64)
        if a.shape != t.shape or a.ndim != 1:
            raise ValueError("amounts and offsets must be 1-D and of the same length")
        a.setflags(write=False)
        t.setflags(write=False)
        self._amounts = a
        self._offsets = t
        self._weighted = -a * t

    @classmethod
    def from_series(cls, series: CashFlowSeries) -> "ValuationFunction":
        return cls(series.amounts(), series.offsets())

    @property
    def amounts(self) -> np.ndarray:
        return self._amounts

    @property
    def offsets(self) -> np.ndarray:
        return self._offsets

    @property
    def scale(self) -> float:
        """Sum of absolute amounts; sets the size of a 'near-zero' derivative."""
        return float(np.abs(self._amounts).sum())

    @staticmethod
    def _check(rate: float) -> float:
        r = float(rate)
        if not r > -1.0:
            raise DomainViolation(f"rate must be > -1, got {r}", rate=r)
        return r

    def value(self, rate: float) -> float:
        base = 1.0 + self._check(rate)
        with np.errstate(over="ignore", divide="ignore", invalid="ignore", under="ignore"):
            return float(np.dot(self._amounts, np.power(base, -self._offsets)))

    def derivative(self, rate: float) -> float:
        base = 1.0 + self._check(rate)
        with np.errstate(over="ignore", divide="ignore", invalid="ignore", under="ignore"):
            return float(np.dot(self._weighted, np.power(base, -self._offsets - 1.0)))

    def __call__(self, rate: float) -> float:
        return self.value(rate)

    def pair(self, rate: float) -> Tuple[float, float]:
        return self.value(rate), self.derivative(rate)


def xnpv(rate: float, cashflows: Iterable[Any]) -> float:
    """
    Spreadsheet-style XNPV over (date, amount) pairs, discounted to the earliest date.

    Unlike solve(), this does not require both signs to be present.
    """
    # same order as CashFlowSeries, so the sum is evaluated exactly as the solver does
    flows = sorted((_coerce(f) for f in cashflows), key=lambda f: f.date)
    if not flows:
        return 0.0
    fn = ValuationFunction([f.amount for f in flows], year_fractions([f.date for f in flows]))
    return fn.value(rate)


__all__ = ["ValuationFunction", "xnpv"]
