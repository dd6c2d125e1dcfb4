# xirr_core/finance/errors.py
"""
Error taxonomy for the XIRR engine.

Two layers:
  - RootFindingError: raised/returned by finance.solver, knows nothing about dates.
  - XirrError: what callers of finance.xirr see. Every subclass is a ValueError
    so `except ValueError` keeps working for callers that do not care which.
"""

from __future__ import annotations


class XirrError(ValueError):
    kind = "xirr_error"

    def __init__(self, message: str = "", *, rate: float | None = None, iterations: int = 0) -> None:
        super().__init__(message or self.kind)
        # last iterate reached before giving up (diagnostic only, never a solution)
        self.rate = rate
        self.iterations = iterations


class InvalidInput(XirrError):
    """Empty, single-entry or one-signed series; non-finite amounts; bad dates."""
    kind = "invalid_input"


class DomainViolation(XirrError):
    """Requested or computed rate left r > -1 irrecoverably."""
    kind = "domain_violation"


class NonConvergence(XirrError):
    """Iteration budget exhausted without meeting the tolerance."""
    kind = "non_convergence"


class NoBracketFound(XirrError):
    """Bisection fallback found no sign change in the admissible domain."""
    kind = "no_bracket_found"


# ---------- root finder ----------
class RootFindingError(Exception):
    kind = "root_finding_error"

    def __init__(self, message: str = "", *, rate: float | None = None, iterations: int = 0) -> None:
        super().__init__(message or self.kind)
        self.rate = rate
        self.iterations = iterations


class IterationLimitExceeded(RootFindingError):
    kind = "iteration_limit_exceeded"


class NoSignChange(RootFindingError):
    kind = "no_sign_change"


class DegenerateDerivative(RootFindingError):
    kind = "degenerate_derivative"


class BoundaryStall(RootFindingError):
    kind = "boundary_stall"


# RootFindingError -> XirrError, used by finance.xirr to translate outcomes
ROOT_TO_XIRR = {
    IterationLimitExceeded: NonConvergence,
    NoSignChange: NoBracketFound,
    DegenerateDerivative: NoBracketFound,
    BoundaryStall: DomainViolation,
}


def translate(err: RootFindingError) -> XirrError:
    cls = ROOT_TO_XIRR.get(type(err), NonConvergence)
    return cls(str(err), rate=err.rate, iterations=err.iterations)


__all__ = [
    "XirrError",
    "InvalidInput",
    "DomainViolation",
    "NonConvergence",
    "NoBracketFound",
    "RootFindingError",
    "IterationLimitExceeded",
    "NoSignChange",
    "DegenerateDerivative",
    "BoundaryStall",
    "translate",
]
