import pytest

from xirr_core.validate import _main, load_params_from_file, validate_payments_dict

GOOD = {
    "payments": [
        {"date": "2021-01-01", "amount": -100},
        {"date": "2022-01-01", "amount": 121},
    ]
}


def test_relaxed_accepts_minimal_document():
    validate_payments_dict(GOOD, mode="relaxed")
    validate_payments_dict({**GOOD, "whatever": 1}, mode="relaxed")


@pytest.mark.parametrize(
    "doc, msg",
    [
        ({}, "missing required keys"),
        ({"payments": {"date": "2021-01-01"}}, "must be a list"),
        ({"payments": [{"date": "2021-01-01"}]}, "must have 'date' and 'amount'"),
        ({"payments": [{"date": "2021-01-01", "amount": "x"}]}, "not a number"),
        ({"payments": [{"date": "2021-01-01", "amount": 1}, {"date": "2022-01-01", "amount": 2}]}, "negative and positive"),
        ({**GOOD, "guess": -1}, "guess must be > -1"),
    ],
)
def test_relaxed_rejections(doc, msg):
    with pytest.raises(SystemExit) as ei:
        validate_payments_dict(doc, mode="relaxed")
    assert msg in str(ei.value)


def test_strict_rejects_unknown_keys_and_zero_amounts():
    with pytest.raises(SystemExit, match="unknown top-level keys"):
        validate_payments_dict({**GOOD, "whatever": 1}, mode="strict")
    zero = {"payments": GOOD["payments"] + [{"date": "2023-01-01", "amount": 0}]}
    validate_payments_dict(zero, mode="relaxed")
    with pytest.raises(SystemExit, match="zero"):
        validate_payments_dict(zero, mode="strict")
    validate_payments_dict({**GOOD, "solver": {"tolerance": 1e-6}, "guess": 0.2}, mode="strict")


def test_load_params_rejects_directory(tmp_path):
    with pytest.raises(SystemExit):
        load_params_from_file(tmp_path)


def test_main_over_directory(tmp_path, capsys):
    (tmp_path / "ok.yaml").write_text(
        "payments:\n  - {date: 2021-01-01, amount: -100}\n  - {date: 2022-01-01, amount: 121}\n",
        encoding="utf-8",
    )
    assert _main([str(tmp_path)]) == 0
    assert "OK:" in capsys.readouterr().out

    (tmp_path / "bad.json").write_text('{"payments": []}', encoding="utf-8")
    assert _main([str(tmp_path), "--mode", "strict"]) == 1
    assert "bad.json" in capsys.readouterr().err


def test_main_empty_directory_is_an_error(tmp_path, capsys):
    assert _main([str(tmp_path)]) == 1
    assert "no YAML/JSON files found" in capsys.readouterr().err
