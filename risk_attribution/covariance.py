"""
Covariance Estimation Module

Sample covariance of aligned per-asset return series, plus the correlation
helpers derived from it. Matrices are positioned by asset index; no symbol
lookup happens here.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from risk_attribution.errors import InsufficientDataError, MisalignedSeriesError
from risk_attribution.lookback import TRADING_DAYS_PER_YEAR


def _as_return_rows(return_series: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    if isinstance(return_series, np.ndarray):
        if return_series.ndim == 1:
            return_series = return_series[np.newaxis, :]
        rows = [np.asarray(r, dtype=float) for r in return_series]
    else:
        rows = [np.asarray(r, dtype=float).ravel() for r in return_series]

    if not rows:
        raise InsufficientDataError("No return series supplied")

    lengths = {r.size for r in rows}
    if len(lengths) > 1:
        raise MisalignedSeriesError(
            f"Return series have different lengths: {sorted(lengths)}"
        )

    n_obs = lengths.pop()
    if n_obs < 2:
        raise InsufficientDataError(
            f"Need at least 2 observations per series, got {n_obs}"
        )
    return np.vstack(rows)


def compute_covariance(
    return_series: Sequence[Sequence[float]] | np.ndarray,
) -> np.ndarray:
    """Unbiased sample covariance matrix of N aligned return series.

    ``cov[i, j] = sum_t (r_i[t] - mean_i) * (r_j[t] - mean_j) / (T - 1)``

    Each unordered pair is evaluated once and written to both triangles, so
    the result is symmetric bit-for-bit. Constant series are allowed and give
    a zero row/column.

    Args:
        return_series: N sequences of equal length T >= 2, in asset-index
            order. A 2-D array is read as (n_assets, n_periods).

    Returns:
        Read-only (N, N) float array.

    Raises:
        MisalignedSeriesError: If series lengths differ.
        InsufficientDataError: If no series are given or T < 2.
    """
    rows = _as_return_rows(return_series)
    n_assets, n_obs = rows.shape
    deviations = rows - rows.mean(axis=1, keepdims=True)

    cov = np.empty((n_assets, n_assets), dtype=float)
    for i in range(n_assets):
        for j in range(i, n_assets):
            value = float(np.dot(deviations[i], deviations[j])) / (n_obs - 1)
            cov[i, j] = value
            cov[j, i] = value

    cov.flags.writeable = False
    return cov


def annualize_covariance(
    cov: np.ndarray,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> np.ndarray:
    """Scale a per-period covariance matrix to annual units."""
    annual = np.asarray(cov, dtype=float) * periods_per_year
    annual.flags.writeable = False
    return annual


def correlation_matrix(cov: np.ndarray) -> np.ndarray:
    """Correlation matrix from a covariance matrix.

    Pairs involving a zero-variance asset have no defined correlation and are
    reported as 0; the diagonal is always 1.
    """
    cov = np.asarray(cov, dtype=float)
    std = np.sqrt(np.clip(np.diag(cov), 0.0, None))
    denom = np.outer(std, std)

    with np.errstate(divide="ignore", invalid="ignore"):
        corr = np.where(denom > 0, cov / denom, 0.0)

    corr = np.clip(corr, -1.0, 1.0)
    np.fill_diagonal(corr, 1.0)
    return corr


def average_correlation(corr: np.ndarray) -> float:
    """Mean pairwise correlation, excluding the diagonal."""
    corr = np.asarray(corr, dtype=float)
    n = corr.shape[0]
    if n < 2:
        return 0.0
    upper = corr[np.triu_indices(n, k=1)]
    return float(upper.mean())
