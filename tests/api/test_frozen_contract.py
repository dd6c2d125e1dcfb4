import importlib
import inspect
from pathlib import Path


def _param_names(fn):
    return [p.name for p in inspect.signature(fn).parameters.values()]


def test_finance_xirr_public_api_is_stable():
    """Lock down that solve/compute live in finance.xirr with a stable entrypoint."""
    m = importlib.import_module("xirr_core.finance.xirr")
    for name in ("solve", "compute", "XirrResult"):
        assert hasattr(m, name), name

    assert _param_names(m.solve)[:2] == ["cashflows", "initial_guess"]
    assert _param_names(m.compute)[:2] == ["cashflows", "initial_guess"]
    assert inspect.signature(m.solve).parameters["initial_guess"].default is None


def test_root_finder_signature_is_stable():
    s = importlib.import_module("xirr_core.finance.solver")
    assert _param_names(s.find_root)[:3] == ["objective", "derivative", "initial_guess"]
    for field in ("rate", "iterations", "method", "error"):
        assert field in s.RootResult.__dataclass_fields__


def test_solver_module_stays_free_of_dates_and_io():
    """The root finder is driven by plain callables; keep date/IO imports out of it."""
    m = importlib.import_module("xirr_core.finance.solver")
    src = Path(m.__file__).read_text(encoding="utf-8")
    for forbidden in ("import datetime", "from datetime", "pandas", "yaml", ".cashflow", ".valuation"):
        assert forbidden not in src, f"Unexpected dependency '{forbidden}' inside finance/solver.py"


def test_error_taxonomy_kinds_are_stable():
    e = importlib.import_module("xirr_core.finance.errors")
    kinds = {cls.__name__: cls.kind for cls in (e.InvalidInput, e.DomainViolation, e.NonConvergence, e.NoBracketFound)}
    assert kinds == {
        "InvalidInput": "invalid_input",
        "DomainViolation": "domain_violation",
        "NonConvergence": "non_convergence",
        "NoBracketFound": "no_bracket_found",
    }
    for cls in (e.InvalidInput, e.DomainViolation, e.NonConvergence, e.NoBracketFound):
        assert issubclass(cls, e.XirrError) and issubclass(cls, ValueError)


def test_root_errors_translate_to_xirr_errors():
    e = importlib.import_module("xirr_core.finance.errors")
    cases = {
        e.IterationLimitExceeded: e.NonConvergence,
        e.NoSignChange: e.NoBracketFound,
        e.DegenerateDerivative: e.NoBracketFound,
        e.BoundaryStall: e.DomainViolation,
    }
    for src, dst in cases.items():
        out = e.translate(src("boom", rate=0.5, iterations=3))
        assert type(out) is dst
        assert out.rate == 0.5 and out.iterations == 3 and str(out) == "boom"


def test_validate_exports_are_stable():
    """validate module must expose these helpers (names kept stable)."""
    v = importlib.import_module("xirr_core.validate")
    for name in ("validate_payments_dict", "load_params_from_file"):
        obj = getattr(v, name, None)
        assert callable(obj), f"Missing or non-callable export: {name}"


def test_adapters_and_core_exports():
    a = importlib.import_module("xirr_core.adapters")
    c = importlib.import_module("xirr_core.core")
    for mod, names in ((a, a.__all__), (c, c.__all__)):
        for name in names:
            assert callable(getattr(mod, name)), name
