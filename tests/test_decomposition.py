"""Tests for the risk decomposition module."""

import numpy as np
import pytest

from risk_attribution.covariance import compute_covariance
from risk_attribution.decomposition import (
    RiskContribution,
    compute_risk_contributions,
    normalize_weights,
    portfolio_volatility,
)
from risk_attribution.errors import InvalidWeightError, MisalignedSeriesError


def _make_covariance(n_assets: int = 5) -> np.ndarray:
    rng = np.random.default_rng(42)
    returns = rng.normal(0.0005, 0.02, (n_assets, 300))
    returns[1] += 0.5 * returns[0]
    return compute_covariance(returns)


def test_two_asset_fixed_case():
    cov = compute_covariance([[0.01, -0.02, 0.03], [0.02, -0.01, 0.01]])
    result = compute_risk_contributions([0.6, 0.4], cov)

    assert isinstance(result, RiskContribution)
    assert not result.degenerate
    assert result.portfolio_volatility == pytest.approx(np.sqrt(36.12 / 90000))
    np.testing.assert_allclose(
        result.percentages,
        [100 * 26.64 / 36.12, 100 * 9.48 / 36.12],
        rtol=1e-9,
    )


def test_absolute_contributions_sum_to_volatility():
    cov = _make_covariance()
    result = compute_risk_contributions([0.3, 0.25, 0.2, 0.15, 0.1], cov)
    assert result.absolute.sum() == pytest.approx(result.portfolio_volatility, rel=1e-12)


def test_percentages_sum_to_100():
    cov = _make_covariance()
    result = compute_risk_contributions([0.3, 0.25, 0.2, 0.15, 0.1], cov)
    assert abs(result.percentages.sum() - 100.0) < 1e-6 * 5


def test_volatility_matches_quadratic_form():
    cov = _make_covariance()
    w = np.array([0.3, 0.25, 0.2, 0.15, 0.1])
    result = compute_risk_contributions(w, cov)
    assert result.portfolio_volatility == pytest.approx(np.sqrt(w @ cov @ w))
    assert portfolio_volatility(w, cov) == pytest.approx(result.portfolio_volatility)


def test_marginal_times_weight_is_absolute():
    cov = _make_covariance()
    result = compute_risk_contributions([0.3, 0.25, 0.2, 0.15, 0.1], cov)
    np.testing.assert_allclose(result.weights * result.marginal, result.absolute)


def test_single_asset_carries_all_risk():
    cov = np.array([[0.04]])
    result = compute_risk_contributions([1.0], cov)
    assert result.percentages.tolist() == pytest.approx([100.0])
    assert result.absolute[0] == pytest.approx(result.portfolio_volatility)
    assert result.portfolio_volatility == pytest.approx(np.sqrt(0.04))


def test_diagonal_covariance_contribution_proportional_to_variance():
    variances = np.array([0.01, 0.04, 0.09])
    cov = np.diag(variances)
    w = np.full(3, 1 / 3)
    result = compute_risk_contributions(w, cov)

    expected = w ** 2 * variances
    np.testing.assert_allclose(result.percentages, 100 * expected / expected.sum())


def test_short_position_has_negative_contribution():
    cov = np.array([
        [0.04, 0.03],
        [0.03, 0.04],
    ])
    result = compute_risk_contributions([1.0, -0.5], cov)
    assert result.percentages[1] < 0
    assert result.percentages.sum() == pytest.approx(100.0)
    assert result.absolute.sum() == pytest.approx(result.portfolio_volatility)


def test_market_neutral_book_keeps_euler_identity():
    cov = _make_covariance()
    w = [0.5, -0.5, 0.3, -0.2, -0.1]
    result = compute_risk_contributions(w, cov)
    np.testing.assert_allclose(result.weights, w)
    assert result.absolute.sum() == pytest.approx(result.portfolio_volatility)


def test_percentage_weights_normalized():
    cov = _make_covariance(3)
    as_fraction = compute_risk_contributions([0.5, 0.3, 0.2], cov)
    as_percent = compute_risk_contributions([50, 30, 20], cov)
    np.testing.assert_allclose(as_percent.weights, [0.5, 0.3, 0.2])
    np.testing.assert_allclose(as_percent.percentages, as_fraction.percentages)
    assert as_percent.portfolio_volatility == pytest.approx(as_fraction.portfolio_volatility)


def test_zero_covariance_is_degenerate():
    result = compute_risk_contributions([0.5, 0.5], np.zeros((2, 2)))
    assert result.degenerate
    assert result.portfolio_volatility == 0.0
    assert result.absolute.tolist() == [0.0, 0.0]
    assert result.percentages.tolist() == [50.0, 50.0]
    assert not np.isnan(result.percentages).any()


def test_degenerate_split_ignores_unheld_assets():
    result = compute_risk_contributions([0.6, 0.0, 0.4], np.zeros((3, 3)))
    assert result.degenerate
    assert result.percentages.tolist() == [50.0, 0.0, 50.0]


def test_all_zero_weights_is_degenerate():
    result = compute_risk_contributions([0.0, 0.0], _make_covariance(2))
    assert result.degenerate
    assert result.percentages.tolist() == [0.0, 0.0]
    assert result.absolute.tolist() == [0.0, 0.0]


def test_weight_length_mismatch_raises():
    with pytest.raises(InvalidWeightError):
        compute_risk_contributions([0.5, 0.5], _make_covariance(3))


def test_non_finite_weights_raise():
    with pytest.raises(InvalidWeightError):
        compute_risk_contributions([0.5, np.nan], _make_covariance(2))
    with pytest.raises(InvalidWeightError):
        compute_risk_contributions([np.inf, 0.5], _make_covariance(2))


def test_non_square_covariance_raises():
    with pytest.raises(MisalignedSeriesError):
        compute_risk_contributions([0.5, 0.5], np.zeros((2, 3)))


def test_normalize_weights_leaves_fractions():
    np.testing.assert_array_equal(normalize_weights([0.7, 0.3]), [0.7, 0.3])


def test_normalize_weights_empty_raises():
    with pytest.raises(InvalidWeightError):
        normalize_weights([])


def test_to_dict_keys():
    d = compute_risk_contributions([1.0], np.array([[0.01]])).to_dict()
    assert set(d) == {"absolute", "percentages", "portfolio_volatility", "degenerate"}


def test_perfectly_hedged_pair_is_degenerate():
    rng = np.random.default_rng(5)
    r = rng.normal(0.0005, 0.02, 250)
    for k in (0.3, 2.3, 3.0, 7.0):
        cov = compute_covariance([r, k * r])
        result = compute_risk_contributions([1.0, -1.0 / k], cov)
        assert result.degenerate, k
        assert result.portfolio_volatility == 0.0
        assert result.percentages.tolist() == [50.0, 50.0]


def test_small_but_real_volatility_is_not_degenerate():
    cov = np.diag([1e-10, 1e-10])
    result = compute_risk_contributions([0.5, 0.5], cov)
    assert not result.degenerate
    np.testing.assert_allclose(result.percentages, [50.0, 50.0])


def test_nearly_hedged_pair_is_not_degenerate():
    rng = np.random.default_rng(5)
    r = rng.normal(0.0005, 0.02, 250)
    cov = compute_covariance([r, 3.0 * r])
    result = compute_risk_contributions([1.0, -0.99 / 3.0], cov)
    assert not result.degenerate
    assert result.portfolio_volatility > 0
    assert result.percentages.sum() == pytest.approx(100.0)
