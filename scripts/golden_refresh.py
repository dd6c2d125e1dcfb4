from __future__ import annotations
import json, subprocess, sys, tempfile
from pathlib import Path

PAYMENTS = Path("tests/golden/payments")
BASELINE = Path("tests/golden/summary.json")


def main() -> int:
    if not PAYMENTS.is_dir():
        print(f"[x] Missing payments dir: {PAYMENTS}", file=sys.stderr)
        return 2

    baseline = {}
    for case in sorted(PAYMENTS.iterdir()):
        if case.suffix.lower() not in (".csv", ".yaml", ".yml", ".json"):
            continue
        with tempfile.TemporaryDirectory() as out:
            cmd = [sys.executable, "-m", "xirr_core", str(case), "--format", "json", "--out", out]
            proc = subprocess.run(cmd, capture_output=True, text=True)
            sj = Path(out) / "summary.json"
            if proc.returncode != 0 or not sj.exists():
                print(f"[x] {case.name}: exit {proc.returncode}\n{proc.stderr}", file=sys.stderr)
                return 3
            baseline[case.stem] = float(json.loads(sj.read_text(encoding="utf-8"))["rate"])

    BASELINE.parent.mkdir(parents=True, exist_ok=True)
    BASELINE.write_text(json.dumps(baseline, indent=2, sort_keys=True), encoding="utf-8")
    print(f"[ok] Wrote baseline {BASELINE} ({len(baseline)} cases)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
