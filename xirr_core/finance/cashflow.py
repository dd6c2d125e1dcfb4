# xirr_core/finance/cashflow.py
"""
Dated cash flows and the validated, date-sorted series the solver runs on.

Day count is actual/365 from the earliest date present (no leap-year handling),
which is what spreadsheet XIRR does.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Iterator, List, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidInput

DAYS_PER_YEAR = 365.0


def as_date(value: Any) -> date:
    """date / datetime (incl. pandas.Timestamp) / numpy.datetime64 / ISO string -> date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, np.datetime64):
        if np.isnat(value):
            raise InvalidInput("missing date (NaT)")
        return value.astype("datetime64[D]").item()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise InvalidInput(f"not an ISO date: {value!r}") from None
    raise InvalidInput(f"unsupported date value: {value!r}")


@dataclass(frozen=True)
class CashFlow:
    """One transaction. Negative amount = payment made, positive = received."""

    date: date
    amount: float

    @classmethod
    def of(cls, when: Any, amount: Any) -> "CashFlow":
        try:
            amt = float(amount)
        except (TypeError, ValueError):
            raise InvalidInput(f"amount is not a number: {amount!r}") from None
        return cls(date=as_date(when), amount=amt)


FlowLike = Union[CashFlow, Tuple[Any, Any], Sequence[Any]]


def _coerce(item: FlowLike) -> CashFlow:
    if isinstance(item, CashFlow):
        return item
    try:
        when, amount = item  # (date, amount)
    except (TypeError, ValueError):
        raise InvalidInput(f"expected a (date, amount) pair, got {item!r}") from None
    return CashFlow.of(when, amount)


def check_amounts(amounts: Sequence[float]) -> None:
    """Raise InvalidInput unless the amounts can have a finite root at all."""
    if len(amounts) == 0:
        raise InvalidInput("no cash flows supplied")
    if len(amounts) < 2:
        raise InvalidInput("at least two cash flows are required")
    bad = [a for a in amounts if not math.isfinite(a)]
    if bad:
        raise InvalidInput(f"non-finite amounts: {bad}")
    positive = any(a > 0.0 for a in amounts)
    negative = any(a < 0.0 for a in amounts)
    if not (positive and negative):
        raise InvalidInput("negative and positive payments are required")


class CashFlowSeries:
    """
    Immutable, validated, ascending-by-date series.

    Offsets are measured from the minimum date, never from whichever flow the
    caller happened to list first.
    """

    __slots__ = ("_flows",)

    def __init__(self, flows: Iterable[FlowLike]) -> None:
        coerced: List[CashFlow] = [_coerce(f) for f in flows]
        check_amounts([f.amount for f in coerced])
        # sorted() is stable: same-day flows keep caller order
        self._flows: Tuple[CashFlow, ...] = tuple(sorted(coerced, key=lambda f: f.date))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Any, Any]]) -> "CashFlowSeries":
        return cls(pairs)

    def __len__(self) -> int:
        return len(self._flows)

    def __iter__(self) -> Iterator[CashFlow]:
        return iter(self._flows)

    def __getitem__(self, i: int) -> CashFlow:
        return self._flows[i]

    def __repr__(self) -> str:
        return f"CashFlowSeries(n={len(self)}, epoch={self.epoch.isoformat()})"

    @property
    def flows(self) -> Tuple[CashFlow, ...]:
        return self._flows

    @property
    def epoch(self) -> date:
        return self._flows[0].date

    def amounts(self) -> np.ndarray:
        return np.array([f.amount for f in self._flows], dtype=np.float64)

    def offsets(self) -> np.ndarray:
        """Year fractions (days since epoch / 365)."""
        return year_fractions([f.date for f in self._flows])


def year_fractions(dates: Sequence[date]) -> np.ndarray:
    """Actual/365 offsets of `dates` from the earliest of them, in input order."""
    if len(dates) == 0:
        return np.zeros(0, dtype=np.float64)
    t0 = min(dates)
    return np.array([(d - t0).days for d in dates], dtype=np.float64) / DAYS_PER_YEAR


__all__ = ["DAYS_PER_YEAR", "as_date", "year_fractions", "CashFlow", "CashFlowSeries", "check_amounts"]
