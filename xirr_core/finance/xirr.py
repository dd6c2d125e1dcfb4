# xirr_core/finance/xirr.py
"""
XIRR for irregularly dated cash flows, spreadsheet semantics.

    rate r such that  sum_i CF_i / (1+r)^((d_i - d_min)/365) = 0

solve() never raises for bad data or a failed iteration: it returns an
XirrResult whose `error` is one of InvalidInput, DomainViolation,
NonConvergence or NoBracketFound. compute() is the raising variant.

Examples
--------
>>> from datetime import date
>>> solve([(date(2021, 1, 1), -100.0), (date(2022, 1, 1), 121.0)]).rate
0.21...
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..config import DEFAULT_SETTINGS, SolverSettings
from .cashflow import CashFlowSeries
from .errors import DomainViolation, InvalidInput, XirrError, translate
from .solver import NEWTON, RootResult, find_root
from .valuation import ValuationFunction

logger = logging.getLogger("xirr_core.finance.xirr")

# smallest |NPV| distinguishable from rounding noise, relative to sum(|amounts|)
NPV_RESOLUTION = 1e-14


@dataclass(frozen=True)
class XirrResult:
    rate: Optional[float]
    error: Optional[XirrError] = None
    iterations: int = 0
    method: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> float:
        if self.error is not None:
            raise self.error
        return float(self.rate)  # type: ignore[arg-type]

    def as_dict(self) -> dict:
        return {
            "rate": self.rate,
            "ok": self.ok,
            "error": None if self.error is None else self.error.kind,
            "message": None if self.error is None else str(self.error),
            "iterations": self.iterations,
            "method": self.method,
        }


def _failed(err: XirrError, method: Optional[str] = None) -> XirrResult:
    return XirrResult(rate=None, error=err, iterations=err.iterations, method=method)


def run_root_finder(fn: ValuationFunction, guess: float, settings: SolverSettings) -> RootResult:
    # tighter for small series so scaling every amount never moves the rate;
    # never below what float64 can resolve for very large ones
    tolerance = max(min(settings.tolerance, settings.tolerance * fn.scale), NPV_RESOLUTION * fn.scale)
    return find_root(
        fn.value,
        fn.derivative,
        guess,
        tolerance=tolerance,
        max_iterations=settings.max_iterations,
        step_epsilon=settings.step_epsilon,
        derivative_floor=settings.derivative_epsilon * fn.scale,
        max_clamps=settings.max_clamps,
        bracket_step=settings.bracket_step,
        max_expansions=settings.max_expansions,
        max_bisections=settings.max_bisections,
    )


def solve(
    cashflows: Iterable[Any],
    initial_guess: Optional[float] = None,
    *,
    settings: Optional[SolverSettings] = None,
) -> XirrResult:
    """
    Solve XIRR for (date, amount) pairs or CashFlow objects, in any order.

    initial_guess defaults to settings.guess (0.1). Callers wanting a
    different starting point on failure retry with another guess; this
    function does not.
    """
    cfg = settings or DEFAULT_SETTINGS

    try:
        series = cashflows if isinstance(cashflows, CashFlowSeries) else CashFlowSeries(cashflows)
        guess = cfg.guess if initial_guess is None else float(initial_guess)
    except XirrError as e:
        logger.debug("rejected input: %s", e)
        return _failed(e)
    except (TypeError, ValueError):
        return _failed(InvalidInput(f"initial guess is not a number: {initial_guess!r}"))

    if not (math.isfinite(guess) and guess > -1.0):
        return _failed(DomainViolation(f"initial guess must be a finite rate > -1, got {guess}", rate=guess))

    fn = ValuationFunction.from_series(series)
    res = run_root_finder(fn, guess, cfg)
    if res.error is not None:
        err = translate(res.error)
        logger.debug("xirr failed from guess %.6g: %s (%s)", guess, err.kind, err)
        return _failed(err, res.method)

    rate = float(res.rate)  # type: ignore[arg-type]
    if res.method != NEWTON:
        logger.debug("xirr=%.12g via %s after %d evaluations", rate, res.method, res.iterations)
    return XirrResult(rate=rate, iterations=res.iterations, method=res.method)


def compute(
    cashflows: Iterable[Any],
    initial_guess: Optional[float] = None,
    *,
    settings: Optional[SolverSettings] = None,
) -> float:
    """Like solve() but returns the bare rate and raises the classified XirrError."""
    return solve(cashflows, initial_guess, settings=settings).unwrap()


__all__ = ["XirrResult", "solve", "compute", "run_root_finder"]
