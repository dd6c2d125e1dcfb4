# xirr_core/validate.py
from __future__ import annotations
import json, sys
from pathlib import Path
from typing import Any, Dict, Iterable, List
import yaml

from .config import validation_mode

ALLOWED_TOP_LEVEL = {"payments", "solver", "guess", "name"}


def validate_payments_dict(data: Dict[str, Any], *, mode: str = "relaxed") -> None:
    """
    Minimal guardrails:
      - relaxed: require a non-empty 'payments' list of {date, amount}
      - strict : also reject unknown top-level keys and zero-amount payments
    """
    if not isinstance(data, dict):
        raise SystemExit("document must be a mapping")
    payments = data.get("payments")
    if not payments:
        raise SystemExit("missing required keys: ['payments']")
    if not isinstance(payments, list):
        raise SystemExit("payments must be a list")

    if mode == "strict":
        unknown = [k for k in data.keys() if k not in ALLOWED_TOP_LEVEL]
        if unknown:
            raise SystemExit(f"unknown top-level keys (strict mode): {unknown}")

    for i, p in enumerate(payments):
        if not isinstance(p, dict) or "date" not in p or "amount" not in p:
            raise SystemExit(f"payments[{i}] must have 'date' and 'amount'")
        try:
            amt = float(p["amount"])
        except (TypeError, ValueError):
            raise SystemExit(f"payments[{i}].amount is not a number: {p['amount']!r}")
        if amt != amt:
            raise SystemExit(f"payments[{i}].amount is NaN")
        if mode == "strict" and amt == 0.0:
            raise SystemExit(f"payments[{i}].amount is zero (strict mode)")

    amounts = [float(p["amount"]) for p in payments]
    if not (any(a > 0 for a in amounts) and any(a < 0 for a in amounts)):
        raise SystemExit("negative and positive payments are required")

    guess = data.get("guess")
    if guess is not None and not float(guess) > -1.0:
        raise SystemExit("guess must be > -1")


def load_params_from_file(path: Path) -> Dict[str, Any]:
    p = Path(path)
    if p.is_dir():
        raise SystemExit(f"{p} is a directory (expected a file)")
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(text) or {}
    return json.loads(text or "{}")


def _iter_input_files(p: Path) -> Iterable[Path]:
    if p.is_file():
        yield p
    elif p.is_dir():
        for ext in ("*.yaml", "*.yml", "*.json"):
            yield from sorted(p.rglob(ext))


def _main(argv: List[str] | None = None) -> int:
    import argparse
    parser = argparse.ArgumentParser(prog="xirr_core.validate", add_help=True)
    parser.add_argument("paths", nargs="+", help="YAML/JSON payment files or directories to validate")
    parser.add_argument("--mode", choices=["strict", "relaxed"], default=None, help="validation mode")
    args = parser.parse_args(argv)

    mode = validation_mode(args.mode)
    had_error = False

    for raw in args.paths:
        target = Path(raw)
        any_seen = False
        for f in _iter_input_files(target):
            if not f.is_file():
                continue
            any_seen = True
            try:
                data = load_params_from_file(f)
                validate_payments_dict(data, mode=mode)
                print(f"OK: {f}")
            except SystemExit as e:
                print(f"{f}: {e}", file=sys.stderr)
                had_error = True
            except (OSError, ValueError, yaml.YAMLError) as e:
                print(f"{f}: ERROR: {e}", file=sys.stderr)
                had_error = True
        if not any_seen:
            print(f"{target}: no YAML/JSON files found", file=sys.stderr)
            had_error = True

    return 1 if had_error else 0


if __name__ == "__main__":
    raise SystemExit(_main())
