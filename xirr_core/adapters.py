# xirr_core/adapters.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping
import math

import pandas as pd

from .finance.cashflow import CashFlow, as_date
from .finance.errors import InvalidInput, XirrError
from .validate import load_params_from_file


# ------------------------------
# Small helpers (no policy here)
# ------------------------------
def to_date(value: Any, *, dayfirst: bool = False):
    """
    Anything date-like -> datetime.date.
    ISO strings and date objects go straight through; other strings are left
    to pandas (e.g. '11/06/2015' with dayfirst=True).
    """
    if not isinstance(value, str):
        return as_date(value)
    try:
        return as_date(value)
    except XirrError:
        pass
    try:
        ts = pd.to_datetime(value, dayfirst=dayfirst)
    except (ValueError, TypeError):
        raise InvalidInput(f"unparseable date: {value!r}") from None
    if pd.isna(ts):
        raise InvalidInput(f"missing date: {value!r}")
    return ts.date()


def _is_number(v: Any) -> bool:
    try:
        return math.isfinite(float(v))
    except (TypeError, ValueError):
        return False


def _flow(when: Any, amount: Any, *, dayfirst: bool = False) -> CashFlow:
    if not _is_number(amount):
        raise InvalidInput(f"amount is not a finite number: {amount!r}")
    return CashFlow(date=to_date(when, dayfirst=dayfirst), amount=float(amount))


# ------------------------------
# Public adapter(s)
# ------------------------------
def payments_from_records(
    records: Iterable[Any],
    *,
    amount_first: bool = False,
    dayfirst: bool = False,
) -> List[CashFlow]:
    """
    Accepts CashFlow objects, {'date': ..., 'amount': ...} mappings, or pairs.
    Pairs are (date, amount) unless amount_first=True, which reads (amount, date)
    rows as found in headerless CSV exports.
    """
    out: List[CashFlow] = []
    for rec in records:
        if isinstance(rec, CashFlow):
            out.append(rec)
        elif isinstance(rec, Mapping):
            if "date" not in rec or "amount" not in rec:
                raise InvalidInput(f"payment needs 'date' and 'amount': {dict(rec)!r}")
            out.append(_flow(rec["date"], rec["amount"], dayfirst=dayfirst))
        else:
            try:
                a, b = rec
            except (TypeError, ValueError):
                raise InvalidInput(f"expected a pair, got {rec!r}") from None
            when, amount = (b, a) if amount_first else (a, b)
            out.append(_flow(when, amount, dayfirst=dayfirst))
    return out


def payments_from_frame(
    df: pd.DataFrame,
    *,
    date_col: str = "date",
    amount_col: str = "amount",
    dayfirst: bool = False,
) -> List[CashFlow]:
    """DataFrame with a date column and an amount column -> CashFlow list. NaN rows are an error."""
    missing = [c for c in (date_col, amount_col) if c not in df.columns]
    if missing:
        raise InvalidInput(f"missing columns: {missing}")
    if df[[date_col, amount_col]].isna().any().any():
        raise InvalidInput("payments table contains empty cells")
    return [
        _flow(when, amount, dayfirst=dayfirst)
        for when, amount in zip(df[date_col].tolist(), df[amount_col].tolist())
    ]


def _read_csv(path: Path, *, dayfirst: bool = False) -> List[CashFlow]:
    raw = pd.read_csv(path, header=None, dtype=str, skipinitialspace=True, comment="#")
    raw = raw.dropna(how="all")
    if raw.empty:
        return []
    if raw.shape[1] < 2:
        raise InvalidInput(f"{path}: expected two columns (amount,date or date,amount)")

    first = [str(v).strip().lower() for v in raw.iloc[0, :2]]
    if not any(_is_number(v) for v in first):
        # header row: pick columns by name
        names = [str(v).strip().lower() for v in raw.iloc[0]]
        body = raw.iloc[1:].copy()
        body.columns = names
        return payments_from_frame(body, dayfirst=dayfirst)

    # headerless: column order decided by which column of the first row is numeric
    amount_first = _is_number(raw.iloc[0, 0])
    rows = zip(raw.iloc[:, 0].tolist(), raw.iloc[:, 1].tolist())
    return payments_from_records(rows, amount_first=amount_first, dayfirst=dayfirst)


def load_payments(path: str | Path, *, dayfirst: bool = False) -> List[CashFlow]:
    """
    Read a payments file:
      *.csv          rows of amount,date (or date,amount; header optional)
      *.yaml / *.json  {'payments': [{'date': ..., 'amount': ...}, ...]}
    """
    p = Path(path)
    if p.suffix.lower() == ".csv":
        return _read_csv(p, dayfirst=dayfirst)
    data: Dict[str, Any] = load_params_from_file(p)
    return payments_from_records(data.get("payments") or [], dayfirst=dayfirst)


__all__ = ["to_date", "payments_from_records", "payments_from_frame", "load_payments"]
