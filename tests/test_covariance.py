"""Tests for covariance estimation."""

import numpy as np
import pytest

from risk_attribution.covariance import (
    annualize_covariance,
    average_correlation,
    compute_covariance,
    correlation_matrix,
)
from risk_attribution.errors import InsufficientDataError, MisalignedSeriesError

RETURNS_A = [0.01, -0.02, 0.03]
RETURNS_B = [0.02, -0.01, 0.01]


def _random_returns(n_assets: int = 6, n_obs: int = 250) -> np.ndarray:
    rng = np.random.default_rng(7)
    mix = rng.normal(0, 1, (n_assets, n_assets))
    return mix @ rng.normal(0.0005, 0.015, (n_assets, n_obs))


def test_two_asset_hand_computed():
    cov = compute_covariance([RETURNS_A, RETURNS_B])
    expected = np.array([[57.0, 25.5], [25.5, 21.0]]) / 90000
    np.testing.assert_allclose(cov, expected, rtol=1e-12)


def test_exactly_symmetric():
    cov = compute_covariance(_random_returns())
    n = cov.shape[0]
    for i in range(n):
        for j in range(n):
            assert cov[i, j] == cov[j, i]


def test_diagonal_is_unbiased_sample_variance():
    returns = _random_returns()
    cov = compute_covariance(returns)
    np.testing.assert_allclose(np.diag(cov), returns.var(axis=1, ddof=1), rtol=1e-12)


def test_matches_numpy_cov():
    returns = _random_returns(4, 120)
    np.testing.assert_allclose(compute_covariance(returns), np.cov(returns), rtol=1e-10, atol=1e-18)


def test_result_is_read_only():
    cov = compute_covariance([RETURNS_A, RETURNS_B])
    with pytest.raises(ValueError):
        cov[0, 0] = 1.0


def test_constant_series_gives_zero_row():
    cov = compute_covariance([RETURNS_A, [0.005, 0.005, 0.005]])
    assert cov[1, 1] == 0.0
    assert cov[0, 1] == 0.0
    assert cov[1, 0] == 0.0
    assert cov[0, 0] > 0


def test_single_asset():
    cov = compute_covariance([RETURNS_A])
    assert cov.shape == (1, 1)
    assert cov[0, 0] == pytest.approx(57.0 / 90000)


def test_one_dimensional_array_is_one_asset():
    cov = compute_covariance(np.array(RETURNS_A))
    assert cov.shape == (1, 1)


def test_unequal_lengths_raise():
    with pytest.raises(MisalignedSeriesError):
        compute_covariance([RETURNS_A, RETURNS_B[:2]])


def test_single_observation_raises():
    with pytest.raises(InsufficientDataError):
        compute_covariance([[0.01], [0.02]])


def test_no_series_raises():
    with pytest.raises(InsufficientDataError):
        compute_covariance([])


def test_annualize_scales_by_periods():
    cov = compute_covariance([RETURNS_A, RETURNS_B])
    np.testing.assert_allclose(annualize_covariance(cov), cov * 252)
    np.testing.assert_allclose(annualize_covariance(cov, 12), cov * 12)


def test_correlation_unit_diagonal_and_bounds():
    corr = correlation_matrix(compute_covariance(_random_returns()))
    np.testing.assert_array_equal(np.diag(corr), 1.0)
    assert np.all(corr <= 1.0) and np.all(corr >= -1.0)


def test_correlation_two_asset_value():
    corr = correlation_matrix(compute_covariance([RETURNS_A, RETURNS_B]))
    assert corr[0, 1] == pytest.approx(25.5 / np.sqrt(57.0 * 21.0))


def test_correlation_with_zero_variance_asset_is_zero():
    corr = correlation_matrix(compute_covariance([RETURNS_A, [0.0, 0.0, 0.0]]))
    assert corr[0, 1] == 0.0
    assert not np.isnan(corr).any()


def test_average_correlation():
    corr = np.array([
        [1.0, 0.2, 0.4],
        [0.2, 1.0, 0.6],
        [0.4, 0.6, 1.0],
    ])
    assert average_correlation(corr) == pytest.approx(0.4)


def test_average_correlation_single_asset():
    assert average_correlation(np.array([[1.0]])) == 0.0
