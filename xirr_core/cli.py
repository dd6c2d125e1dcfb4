# xirr_core/cli.py
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

import yaml

from .adapters import load_payments, payments_from_records
from .config import load_solver_settings, settings_from_mapping, validation_mode
from .core import compute_with_sweep
from .finance.errors import InvalidInput
from .finance.xirr import solve
from .validate import load_params_from_file, validate_payments_dict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="xirr_core",
        description="XIRR (spreadsheet semantics) for a file of dated payments",
    )
    p.add_argument(
        "payments",
        help="CSV (amount,date rows; header optional) or YAML/JSON with a 'payments' list.",
    )
    p.add_argument(
        "--guess",
        type=float,
        default=None,
        help="Initial rate guess (default: solver.guess from config, else 0.1).",
    )
    p.add_argument(
        "--config",
        default=None,
        help="YAML with a 'solver' section (tolerance, max_iterations, ...).",
    )
    p.add_argument(
        "--sweep",
        action="store_true",
        help="On failure retry with guesses -0.99 .. 0.99 (step 0.01).",
    )
    p.add_argument(
        "--format",
        dest="fmt",
        default="text",
        choices=["text", "json"],
        help="Output format on stdout (default: text).",
    )
    p.add_argument(
        "--out",
        default=None,
        help="If set, also write summary.json into this directory (created if missing).",
    )
    p.add_argument(
        "--dayfirst",
        action="store_true",
        help="Parse ambiguous non-ISO dates as day/month/year.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr.")
    v = p.add_mutually_exclusive_group()
    v.add_argument(
        "--strict",
        action="store_true",
        help="Enable strict validation of YAML/JSON payment files.",
    )
    v.add_argument(
        "--relaxed",
        action="store_true",
        help="Enable relaxed validation (default).",
    )
    return p.parse_args(argv)


def _apply_validation_mode(ns: argparse.Namespace) -> None:
    # Default: leave env as-is; flags override explicitly.
    if ns.strict:
        os.environ["VALIDATION_MODE"] = "strict"
    elif ns.relaxed:
        os.environ["VALIDATION_MODE"] = "relaxed"


def _format_text(summary: dict) -> str:
    if summary["ok"]:
        return (
            f"XIRR: {summary['rate']:.10f} ({summary['rate'] * 100.0:.4f}%) "
            f"[{summary['method']}, {summary['iterations']} iterations]"
        )
    return f"XIRR failed: {summary['error']}: {summary['message']}"


def main(argv: list[str] | None = None) -> int:
    ns = _parse_args(argv)
    _apply_validation_mode(ns)
    logging.basicConfig(level=logging.DEBUG if ns.verbose else logging.WARNING, format=LOG_FORMAT)

    src = Path(ns.payments)
    try:
        if src.suffix.lower() == ".csv":
            doc: dict = {}
            payments = load_payments(src, dayfirst=ns.dayfirst)
        else:
            doc = load_params_from_file(src)
            validate_payments_dict(doc, mode=validation_mode())
            payments = payments_from_records(doc["payments"], dayfirst=ns.dayfirst)

        if ns.config:
            settings = load_solver_settings(ns.config)
        else:
            settings = settings_from_mapping(doc)
    except SystemExit as e:
        # validation messages from validate.py
        print(f"{src}: {e}", file=sys.stderr)
        return 2
    except (OSError, ValueError, yaml.YAMLError) as e:
        # XirrError is a ValueError: bad dates/amounts land here too
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    guess = ns.guess if ns.guess is not None else doc.get("guess")
    if ns.sweep:
        if guess is not None:
            try:
                settings = settings.updated(guess=float(guess))
            except ValueError as e:
                print(f"ERROR: {e}", file=sys.stderr)
                return 2
        result = compute_with_sweep(payments, settings=settings)
    else:
        result = solve(payments, guess, settings=settings)

    summary = result.as_dict()
    summary["payments"] = len(payments)
    summary["source"] = str(src)

    if ns.out:
        out = Path(ns.out)
        out.mkdir(parents=True, exist_ok=True)
        (out / "summary.json").write_text(json.dumps(summary, indent=2), encoding="utf-8")

    if ns.fmt == "json":
        print(json.dumps(summary, indent=2))
    else:
        print(_format_text(summary))

    if isinstance(result.error, InvalidInput):
        return 2
    return 0 if result.ok else 1


__all__ = ["main"]
