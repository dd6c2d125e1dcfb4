# xirr_core/finance/solver.py
"""
Safeguarded Newton-Raphson root finder for NPV(r) = 0 on the domain r > -1.

Strategy
--------
- Newton from the supplied guess while the derivative is usable.
- A Newton update landing at or below -1 is pulled back inside by halving the
  step.
- Whenever Newton gives up (near-zero or non-finite derivative, too many
  consecutive clamped updates, a stalled step, the iteration cap) search
  outward from the guess for a sign change, then bisect the bracket.
- Success always means |objective(r)| < tolerance. A bracket that collapses
  to float resolution without meeting it is an error, never a "best estimate".

Nothing here knows about dates; objective/derivative are plain callables so
the finder can be driven with synthetic functions.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .errors import (
    BoundaryStall,
    DegenerateDerivative,
    IterationLimitExceeded,
    NoSignChange,
    RootFindingError,
)

logger = logging.getLogger("xirr_core.finance.solver")

Fn = Callable[[float], float]

LOWER_LIMIT = -1.0
DOMAIN_EPSILON = 1e-9          # closest the bracket search gets to r = -1

DEFAULT_TOLERANCE = 1e-6       # |NPV| accepted as zero
DEFAULT_MAX_ITERATIONS = 100   # Newton steps
DEFAULT_STEP_EPSILON = 1e-10   # Newton step, relative to 1 + r, treated as stalled
DEFAULT_DERIVATIVE_FLOOR = 1e-12
DEFAULT_MAX_CLAMPS = 20        # consecutive clamped Newton updates
DEFAULT_BRACKET_STEP = 0.01
DEFAULT_MAX_EXPANSIONS = 64
DEFAULT_MAX_BISECTIONS = 200

NEWTON = "newton"
BISECTION = "bisection"


@dataclass(frozen=True)
class RootResult:
    rate: Optional[float]
    iterations: int
    method: str
    error: Optional[RootFindingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _straddles(fa: float, fb: float) -> bool:
    # NaN compares False everywhere, so a NaN endpoint never forms a bracket
    return (fa <= 0.0 <= fb) or (fb <= 0.0 <= fa)


def find_bracket(
    objective: Fn,
    center: float,
    *,
    step: float = DEFAULT_BRACKET_STEP,
    max_expansions: int = DEFAULT_MAX_EXPANSIONS,
) -> Optional[Tuple[float, float, float, float]]:
    """
    Walk outward from `center` looking for a sign change of `objective`.

    Upward the step doubles each round; downward it doubles too until the next
    point would cross -1 + DOMAIN_EPSILON, after which the distance to that
    floor is halved instead. Returns (lo, hi, f_lo, f_hi) or None.
    """
    floor = LOWER_LIMIT + DOMAIN_EPSILON
    f_c = objective(center)
    if f_c == 0.0:
        return center, center, f_c, f_c

    lo, f_lo = center, f_c
    hi, f_hi = center, f_c
    for _ in range(max_expansions):
        nhi = hi + step
        f_nhi = objective(nhi)
        if _straddles(f_hi, f_nhi):
            return hi, nhi, f_hi, f_nhi
        hi, f_hi = nhi, f_nhi

        if lo - floor > DOMAIN_EPSILON:
            nlo = lo - step if lo - step > floor else (lo + floor) / 2.0
            f_nlo = objective(nlo)
            if _straddles(f_nlo, f_lo):
                return nlo, lo, f_nlo, f_lo
            lo, f_lo = nlo, f_nlo

        step *= 2.0
    return None


def bisect(
    objective: Fn,
    lo: float,
    hi: float,
    f_lo: float,
    f_hi: float,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
    max_bisections: int = DEFAULT_MAX_BISECTIONS,
) -> RootResult:
    """
    Bisect a bracket with f_lo, f_hi of opposite sign.

    Succeeds only once |objective| < tolerance. A bracket that shrinks to two
    adjacent floats first, or runs out of halvings, is IterationLimitExceeded
    carrying the midpoint as its diagnostic rate.
    """
    if abs(f_lo) < tolerance:
        return RootResult(lo, 0, BISECTION)
    if abs(f_hi) < tolerance:
        return RootResult(hi, 0, BISECTION)
    for i in range(1, max_bisections + 1):
        mid = 0.5 * (lo + hi)
        if mid == lo or mid == hi:
            err = IterationLimitExceeded(
                f"bracket [{lo:.17g}, {hi:.17g}] is down to float resolution "
                f"but |NPV| is still >= {tolerance:.3g}",
                rate=mid,
                iterations=i - 1,
            )
            return RootResult(None, i - 1, BISECTION, err)
        f_mid = objective(mid)
        if abs(f_mid) < tolerance:
            return RootResult(mid, i, BISECTION)
        if _straddles(f_lo, f_mid):
            hi = mid
        else:
            lo, f_lo = mid, f_mid
    err = IterationLimitExceeded(
        f"|NPV| still >= {tolerance:.3g} after {max_bisections} bisections",
        rate=0.5 * (lo + hi),
        iterations=max_bisections,
    )
    return RootResult(None, max_bisections, BISECTION, err)


def _fallback(
    objective: Fn,
    center: float,
    used: int,
    failure: type,
    reason: str,
    *,
    tolerance: float,
    bracket_step: float,
    max_expansions: int,
    max_bisections: int,
) -> RootResult:
    logger.debug("%s; falling back to bisection", reason)
    bracket = find_bracket(objective, center, step=bracket_step, max_expansions=max_expansions)
    if bracket is None:
        logger.debug("no sign change found around %.6g after %d expansions", center, max_expansions)
        err = failure(
            f"{reason}; no sign change of NPV found in (-1, +inf) searching from {center:.6g}",
            rate=center,
            iterations=used,
        )
        return RootResult(None, used, BISECTION, err)

    lo, hi, f_lo, f_hi = bracket
    logger.debug("bisecting bracket [%.10g, %.10g]", lo, hi)
    res = bisect(objective, lo, hi, f_lo, f_hi, tolerance=tolerance, max_bisections=max_bisections)
    n = used + res.iterations
    if res.error is not None:
        res.error.iterations = n
        return RootResult(None, n, BISECTION, res.error)
    return RootResult(res.rate, n, BISECTION)


def find_root(
    objective: Fn,
    derivative: Fn,
    initial_guess: float,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    step_epsilon: float = DEFAULT_STEP_EPSILON,
    derivative_floor: float = DEFAULT_DERIVATIVE_FLOOR,
    max_clamps: int = DEFAULT_MAX_CLAMPS,
    bracket_step: float = DEFAULT_BRACKET_STEP,
    max_expansions: int = DEFAULT_MAX_EXPANSIONS,
    max_bisections: int = DEFAULT_MAX_BISECTIONS,
) -> RootResult:
    """
    Find r > -1 with |objective(r)| < tolerance.

    Every way Newton can give up (flat or non-finite derivative, stalled or
    boundary-bound steps, iteration cap) hands over to the bracket search from
    the initial guess. The returned error kind records why Newton gave up and
    is only reported when that search finds no usable bracket. On failure
    `rate` is None.
    """
    r0 = float(initial_guess)
    if not (math.isfinite(r0) and r0 > LOWER_LIMIT):
        err = BoundaryStall(f"initial guess must be a finite rate > -1, got {r0}", rate=r0)
        return RootResult(None, 0, NEWTON, err)

    fallback = dict(
        tolerance=tolerance,
        bracket_step=bracket_step,
        max_expansions=max_expansions,
        max_bisections=max_bisections,
    )

    r = r0
    clamped_run = 0
    for i in range(max_iterations):
        f = objective(r)
        if abs(f) < tolerance:
            return RootResult(r, i, NEWTON)

        d = derivative(r)
        if not (math.isfinite(f) and math.isfinite(d)):
            reason = f"non-finite NPV/derivative at r={r:.10g} (iteration {i})"
            return _fallback(objective, r0, i, NoSignChange, reason, **fallback)
        if abs(d) < derivative_floor:
            reason = f"derivative {d:.3g} below floor at r={r:.10g} (iteration {i})"
            return _fallback(objective, r0, i, DegenerateDerivative, reason, **fallback)

        step = f / d
        r_next = r - step
        clamped = r_next <= LOWER_LIMIT
        if clamped:
            clamped_run += 1
            if clamped_run > max_clamps:
                reason = f"Newton kept stepping to r <= -1 ({clamped_run} clamped updates)"
                return _fallback(objective, r0, i + 1, BoundaryStall, reason, **fallback)
            while r_next <= LOWER_LIMIT:
                step /= 2.0
                r_next = r - step
            logger.debug("clamped Newton update to r=%.10g", r_next)
        else:
            clamped_run = 0

        # step measured against the distance to -1; a shrunken clamped step says nothing
        if not clamped and abs(r_next - r) < step_epsilon * (1.0 + r):
            f_next = objective(r_next)
            if abs(f_next) < tolerance:
                return RootResult(r_next, i + 1, NEWTON)
            reason = f"Newton stalled at r={r_next:.10g} with |NPV|={abs(f_next):.3g}"
            return _fallback(objective, r0, i + 1, IterationLimitExceeded, reason, **fallback)
        r = r_next

    reason = f"no convergence after {max_iterations} Newton iterations (last r={r:.10g})"
    return _fallback(objective, r0, max_iterations, IterationLimitExceeded, reason, **fallback)


__all__ = [
    "RootResult",
    "find_root",
    "find_bracket",
    "bisect",
    "NEWTON",
    "BISECTION",
    "DEFAULT_TOLERANCE",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_STEP_EPSILON",
    "DEFAULT_DERIVATIVE_FLOOR",
]
