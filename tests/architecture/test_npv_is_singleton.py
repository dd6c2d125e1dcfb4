import re
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]  # repo root
VALUATION = ROOT / "xirr_core" / "finance" / "valuation.py"

EXCLUDE_DIRS = {
    ".venv", "venv", ".git", ".pytest_cache", "build",
    "dist", "__pycache__", ".mypy_cache", ".tox", ".eggs", "tests",
}


def _skip(p: Path) -> bool:
    parts = set(p.parts)
    if "site-packages" in parts or "dist-packages" in parts:
        return True
    if any(d in parts for d in EXCLUDE_DIRS):
        return True
    return False


def test_only_valuation_module_discounts_cashflows():
    hits = []
    for p in (ROOT / "xirr_core").rglob("*.py"):
        if _skip(p) or p == VALUATION:
            continue
        text = p.read_text(encoding="utf-8", errors="ignore")
        if re.search(r"\bdef\s+x?npv\s*\(", text) or re.search(r"\(1(\.0)?\s*\+\s*r(ate)?\)\s*\*\*", text):
            hits.append(str(p))
    assert not hits, f"Found NPV/discounting outside finance/valuation.py: {hits}"


def test_day_count_is_defined_once():
    hits = []
    for p in (ROOT / "xirr_core").rglob("*.py"):
        if _skip(p):
            continue
        if re.search(r"\.days\s*/\s*365", p.read_text(encoding="utf-8", errors="ignore")):
            hits.append(p.name)
    assert hits == [], f"hard-coded /365 outside DAYS_PER_YEAR: {hits}"


def test_only_cashflow_module_turns_dates_into_year_fractions():
    hits = []
    for p in (ROOT / "xirr_core").rglob("*.py"):
        if _skip(p) or p.name == "cashflow.py":
            continue
        text = p.read_text(encoding="utf-8", errors="ignore")
        if re.search(r"\.days\b", text) or "DAYS_PER_YEAR" in text:
            hits.append(p.name)
    assert hits == [], f"day count computed outside finance/cashflow.py: {hits}"
