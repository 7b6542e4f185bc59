"""Tests for the command-line interface."""

import json

import numpy as np
import pandas as pd
import pytest

from risk_attribution.cli import build_parser, main


def _write_inputs(tmp_path, n_days: int = 300):
    rng = np.random.default_rng(11)
    prices = pd.DataFrame({
        "date": pd.bdate_range("2023-01-02", periods=n_days).strftime("%Y-%m-%d"),
        "SPY": 400.0 * np.cumprod(1 + rng.normal(0.0004, 0.01, n_days)),
        "TLT": 100.0 * np.cumprod(1 + rng.normal(0.0001, 0.006, n_days)),
        "GLD": 180.0 * np.cumprod(1 + rng.normal(0.0002, 0.008, n_days)),
    })
    prices_path = tmp_path / "prices.csv"
    prices.to_csv(prices_path, index=False)

    weights_path = tmp_path / "weights.csv"
    weights_path.write_text("ticker,weight\nSPY,60\nTLT,30\nGLD,10\n")
    return weights_path, prices_path


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.lookback == "5y"
    assert args.min_sample == 20
    assert args.budgets is None


def test_parser_budgets():
    args = build_parser().parse_args(["--budgets", "50,30,20"])
    assert args.budgets == [50.0, 30.0, 20.0]


def test_parser_rejects_unknown_lookback():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--lookback", "7y"])


def test_json_only_run(tmp_path):
    weights_path, prices_path = _write_inputs(tmp_path)
    out = tmp_path / "out"
    main([
        "--weights", str(weights_path),
        "--prices", str(prices_path),
        "--lookback", "1y",
        "--json-only",
        "--output-dir", str(out),
    ])
    data = json.loads((out / "risk_attribution.json").read_text())
    assets = data["risk_attribution"]["assets"]
    assert list(assets) == ["SPY", "TLT", "GLD"]
    total = sum(a["risk_contribution_pct"] for a in assets.values())
    assert total == pytest.approx(100.0, abs=1e-3)
    assert not (out / "risk_attribution.html").exists()


def test_full_run_with_budgets(tmp_path):
    weights_path, prices_path = _write_inputs(tmp_path)
    out = tmp_path / "out"
    main([
        "--weights", str(weights_path),
        "--prices", str(prices_path),
        "--budgets", "50,30,20",
        "--output-dir", str(out),
    ])
    data = json.loads((out / "risk_attribution.json").read_text())
    assert data["risk_budget"]["converged"] is True
    assert (out / "risk_attribution.html").exists()
    assert (out / "weight_vs_risk.png").exists()
    assert (out / "correlation.png").exists()


def test_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--weights", str(tmp_path / "missing.csv"), "--prices", str(tmp_path / "p.csv")])
    assert excinfo.value.code == 1


def test_insufficient_history_exits(tmp_path):
    weights_path, prices_path = _write_inputs(tmp_path, n_days=10)
    with pytest.raises(SystemExit) as excinfo:
        main([
            "--weights", str(weights_path),
            "--prices", str(prices_path),
            "--json-only",
            "--output-dir", str(tmp_path / "out"),
        ])
    assert excinfo.value.code == 1


def test_parser_target_vol():
    args = build_parser().parse_args(["--target-vol", "0.1"])
    assert args.target_vol == 0.1
    assert args.risk_free_rate == 0.0


@pytest.mark.parametrize("value", ["0", "-0.1", "abc"])
def test_parser_rejects_bad_target_vol(value):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--target-vol", value])


def test_target_vol_run(tmp_path):
    weights_path, prices_path = _write_inputs(tmp_path)
    out = tmp_path / "out"
    main([
        "--weights", str(weights_path),
        "--prices", str(prices_path),
        "--target-vol", "0.05",
        "--risk-free-rate", "0.02",
        "--json-only",
        "--output-dir", str(out),
    ])
    budget = json.loads((out / "risk_attribution.json").read_text())["risk_budget"]
    assert budget["target_volatility"] == 0.05
    assert budget["portfolio_volatility"] == pytest.approx(0.05, abs=1e-6)
    weights = sum(a["weight"] for a in budget["assets"].values())
    assert weights + budget["cash_weight"] == pytest.approx(1.0, abs=1e-5)
    assert budget["sharpe_ratio"] == pytest.approx(
        (budget["expected_return"] - 0.02) / 0.05, abs=1e-3
    )
