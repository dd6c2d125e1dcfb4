# xirr_core/core.py
"""
Caller-level retry policy on top of finance.xirr.solve.

solve() tries one guess. Spreadsheet users expect XIRR to "just work", so this
facade tries the default guess first and then sweeps -0.99 .. 0.99 in 0.01
steps until one converges.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence

from .config import DEFAULT_SETTINGS, SolverSettings
from .finance.cashflow import CashFlowSeries
from .finance.errors import XirrError
from .finance.xirr import XirrResult, solve

logger = logging.getLogger("xirr_core.core")


def sweep_guesses(start: float = -0.99, stop: float = 1.0, step: float = 0.01) -> List[float]:
    # integer stepping: repeated float addition drifts past 0.99
    n = int(round((stop - start) / step))
    return [round(start + i * step, 10) for i in range(n)]


def compute_with_sweep(
    cashflows: Iterable[Any],
    guesses: Optional[Sequence[float]] = None,
    *,
    settings: Optional[SolverSettings] = None,
) -> XirrResult:
    """
    First successful solve() over settings.guess followed by `guesses`
    (default: sweep_guesses()). Input errors are returned at once since no
    guess can fix them; otherwise the last failure is returned.
    """
    cfg = settings or DEFAULT_SETTINGS
    try:
        series = CashFlowSeries(cashflows)
    except XirrError as e:
        return XirrResult(rate=None, error=e)

    candidates = [cfg.guess] + list(sweep_guesses() if guesses is None else guesses)
    last: Optional[XirrResult] = None
    for g in candidates:
        res = solve(series, g, settings=cfg)
        if res.ok:
            if last is not None:
                logger.debug("converged from fallback guess %.2f", g)
            return res
        last = res
    logger.debug("no guess out of %d converged", len(candidates))
    return last  # type: ignore[return-value]


__all__ = ["compute_with_sweep", "sweep_guesses"]
