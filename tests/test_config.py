import io

import pytest

from xirr_core.config import (
    DEFAULT_SETTINGS,
    SolverSettings,
    load_solver_settings,
    settings_from_mapping,
    validation_mode,
)


def test_defaults_match_spreadsheet_conventions():
    s = SolverSettings()
    assert s.guess == 0.1
    assert s.tolerance == 1e-6
    assert s.max_iterations == 100
    assert s == DEFAULT_SETTINGS


def test_yaml_solver_section_is_read(tmp_path):
    cfg = tmp_path / "solver.yaml"
    cfg.write_text("solver:\n  tolerance: 1.0e-9\n  max_iterations: 40\n  guess: 0.05\n", encoding="utf-8")
    s = load_solver_settings(cfg, environ={})
    assert s.tolerance == 1e-9
    assert s.max_iterations == 40 and isinstance(s.max_iterations, int)
    assert s.guess == 0.05
    assert s.step_epsilon == DEFAULT_SETTINGS.step_epsilon


def test_flat_mapping_and_unknown_keys_ignored():
    s = load_solver_settings(io.StringIO("max_bisections: 50\ncolour: blue\n"), environ={})
    assert s.max_bisections == 50


def test_malformed_yaml_uses_tolerant_fallback():
    text = "tolerance: 1e-8\nmax_iterations: 25\n  bad: [unclosed\n"
    s = load_solver_settings(io.StringIO(text), environ={})
    assert s.tolerance == 1e-8
    assert s.max_iterations == 25


def test_environment_overrides_file_values():
    env = {"XIRR_TOLERANCE": "1e-4", "XIRR_MAX_ITERATIONS": "7", "XIRR_GUESS": "0.2"}
    s = settings_from_mapping({"solver": {"tolerance": 1e-9, "max_iterations": 40}}, environ=env)
    assert (s.tolerance, s.max_iterations, s.guess) == (1e-4, 7, 0.2)


def test_no_source_gives_defaults_plus_environment(monkeypatch):
    monkeypatch.setenv("XIRR_MAX_ITERATIONS", "12")
    assert load_solver_settings().max_iterations == 12


@pytest.mark.parametrize(
    "kwargs",
    [{"guess": -1.0}, {"tolerance": 0.0}, {"max_iterations": 0}, {"step_epsilon": -1.0}],
)
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        SolverSettings(**kwargs)


def test_updated_returns_new_instance():
    s = DEFAULT_SETTINGS.updated(guess=0.3)
    assert s.guess == 0.3 and DEFAULT_SETTINGS.guess == 0.1


def test_validation_mode_flag_beats_environment(monkeypatch):
    monkeypatch.setenv("VALIDATION_MODE", "strict")
    assert validation_mode(None) == "strict"
    assert validation_mode("relaxed") == "relaxed"
    monkeypatch.setenv("VALIDATION_MODE", "bogus")
    assert validation_mode(None) == "relaxed"


def test_integer_caps_accept_float_notation():
    s = settings_from_mapping({}, environ={"XIRR_MAX_ITERATIONS": "1e3"})
    assert s.max_iterations == 1000 and isinstance(s.max_iterations, int)
    s = load_solver_settings(io.StringIO("max_bisections: 2.0e2\n"), environ={})
    assert s.max_bisections == 200
