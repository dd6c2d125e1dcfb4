from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional
import os
import io
import yaml

from .finance import solver as _s

# env var -> settings field
ENV_OVERRIDES = {
    "XIRR_GUESS": "guess",
    "XIRR_TOLERANCE": "tolerance",
    "XIRR_MAX_ITERATIONS": "max_iterations",
}


@dataclass(frozen=True)
class SolverSettings:
    """Tunable constants of the Newton/bisection hybrid."""

    guess: float = 0.1
    tolerance: float = _s.DEFAULT_TOLERANCE
    max_iterations: int = _s.DEFAULT_MAX_ITERATIONS
    step_epsilon: float = _s.DEFAULT_STEP_EPSILON
    # relative: the absolute floor is derivative_epsilon * sum(|amounts|)
    derivative_epsilon: float = 1e-10
    max_clamps: int = _s.DEFAULT_MAX_CLAMPS
    bracket_step: float = _s.DEFAULT_BRACKET_STEP
    max_expansions: int = _s.DEFAULT_MAX_EXPANSIONS
    max_bisections: int = _s.DEFAULT_MAX_BISECTIONS

    def __post_init__(self) -> None:
        if not self.guess > -1.0:
            raise ValueError(f"solver.guess must be > -1, got {self.guess}")
        if self.tolerance <= 0 or self.step_epsilon <= 0 or self.derivative_epsilon < 0:
            raise ValueError("solver tolerances must be positive")
        if self.max_iterations < 1 or self.max_bisections < 1 or self.max_expansions < 1:
            raise ValueError("solver iteration caps must be >= 1")

    def updated(self, **changes: Any) -> "SolverSettings":
        return replace(self, **changes)


DEFAULT_SETTINGS = SolverSettings()


def _parse_yaml_fallback(text: str) -> Dict[str, Any]:
    """
    Super-tolerant parser for key: value lines (only for emergencies).
    Booleans and numbers are coerced when obvious.
    """
    data: Dict[str, Any] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if not v:
            continue
        if v.lower() in ("true", "false"):
            data[k] = v.lower() == "true"
            continue
        try:
            data[k] = float(v) if any(c in v for c in ".eE") else int(v)
        except ValueError:
            data[k] = v
    return data


def _coerce_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep known fields only, cast to the dataclass field types."""
    out: Dict[str, Any] = {}
    for f in fields(SolverSettings):
        if f.name not in raw or raw[f.name] is None:
            continue
        v = raw[f.name]
        # int(float()) so "1e3" is accepted for integer caps
        out[f.name] = int(float(v)) if f.type in ("int", int) else float(v)
    return out


def settings_from_mapping(
    data: Mapping[str, Any],
    *,
    base: SolverSettings = DEFAULT_SETTINGS,
    environ: Optional[Mapping[str, str]] = None,
) -> SolverSettings:
    """
    Accepts {'solver': {...}} or a flat mapping. Environment XIRR_* wins.
    """
    section = data.get("solver") if isinstance(data.get("solver"), dict) else data
    values = _coerce_fields(section or {})

    env = os.environ if environ is None else environ
    for var, name in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw:
            values.update(_coerce_fields({name: raw}))
    return replace(base, **values)


def load_solver_settings(
    source: str | os.PathLike | io.StringIO | None = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> SolverSettings:
    """
    Load solver settings from a YAML path or text stream. If YAML fails, use a
    tolerant fallback. With no source, defaults plus environment overrides.
    """
    if source is None:
        return settings_from_mapping({}, environ=environ)

    text: str
    if hasattr(source, "read"):
        text = str(source.read())
    else:
        p = os.fspath(source)
        with open(p, "r", encoding="utf-8") as f:
            text = f.read()

    try:
        cfg = yaml.safe_load(text) or {}
        if not isinstance(cfg, dict):
            cfg = {}
    except yaml.YAMLError:
        cfg = _parse_yaml_fallback(text)

    return settings_from_mapping(cfg, environ=environ)


def validation_mode(flag: str | None = None) -> str:
    if flag in ("strict", "relaxed"):
        return flag
    env = (os.environ.get("VALIDATION_MODE") or "").lower()
    return env if env in ("strict", "relaxed") else "relaxed"


__all__ = [
    "SolverSettings",
    "DEFAULT_SETTINGS",
    "load_solver_settings",
    "settings_from_mapping",
    "validation_mode",
]
