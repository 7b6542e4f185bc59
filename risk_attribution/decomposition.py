"""Euler decomposition of portfolio volatility into per-asset contributions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import structlog

from risk_attribution.errors import InvalidWeightError, MisalignedSeriesError

logger = structlog.get_logger(__name__)

# Portfolio volatility at or below this fraction of the gross-exposure scale
# sqrt(|w|' |cov| |w|) is treated as zero.
ZERO_VOLATILITY_RTOL = 1e-6

# A weight vector summing to 100 within this band is read as percentages.
PERCENT_SUM_TOLERANCE = 1.0


@dataclass(frozen=True)
class RiskContribution:
    """Per-asset split of portfolio volatility, in asset-index order."""

    weights: np.ndarray        # normalized fractions
    marginal: np.ndarray       # (cov @ w) / sigma_p
    absolute: np.ndarray       # w_i * marginal_i, sums to portfolio_volatility
    percentages: np.ndarray    # 100 * absolute / sigma_p, sums to 100
    portfolio_volatility: float
    degenerate: bool

    def to_dict(self) -> dict:
        return {
            "absolute": self.absolute.tolist(),
            "percentages": self.percentages.tolist(),
            "portfolio_volatility": self.portfolio_volatility,
            "degenerate": self.degenerate,
        }


def normalize_weights(weights: Sequence[float] | np.ndarray) -> np.ndarray:
    """
    Validate a weight vector and express it as fractions.

    A vector whose sum lies within ``PERCENT_SUM_TOLERANCE`` of 100 is taken
    to be in percent and divided by 100. Any other vector is returned as is,
    so long/short books with arbitrary net exposure keep their weights.
    """
    w = np.asarray(weights, dtype=float)
    if w.ndim != 1:
        raise InvalidWeightError(f"Weights must be one-dimensional, got shape {w.shape}")
    if w.size == 0:
        raise InvalidWeightError("Weight vector is empty")
    if not np.all(np.isfinite(w)):
        raise InvalidWeightError("Weights contain non-finite values")

    if abs(float(w.sum()) - 100.0) <= PERCENT_SUM_TOLERANCE:
        return w / 100.0
    return w.copy()


def _check_covariance(cov: Sequence[Sequence[float]] | np.ndarray, n_assets: int) -> np.ndarray:
    cov = np.asarray(cov, dtype=float)
    if cov.ndim != 2 or cov.shape[0] != cov.shape[1]:
        raise MisalignedSeriesError(f"Covariance matrix must be square, got shape {cov.shape}")
    if cov.shape[0] != n_assets:
        raise InvalidWeightError(
            f"Weights dimension {n_assets} doesn't match covariance {cov.shape[0]}"
        )
    if not np.all(np.isfinite(cov)):
        raise MisalignedSeriesError("Covariance matrix contains non-finite values")
    return cov


def portfolio_volatility(
    weights: Sequence[float] | np.ndarray,
    cov: Sequence[Sequence[float]] | np.ndarray,
) -> float:
    """sigma_p = sqrt(w' cov w), with the variance floored at zero."""
    w = normalize_weights(weights)
    cov = _check_covariance(cov, w.size)
    variance = max(float(w @ (cov @ w)), 0.0)
    return float(np.sqrt(variance))


def compute_risk_contributions(
    weights: Sequence[float] | np.ndarray,
    cov: Sequence[Sequence[float]] | np.ndarray,
) -> RiskContribution:
    """Decompose portfolio volatility into per-asset contributions.

    Because w' cov w is homogeneous of degree 2 in w, the absolute
    contributions ``CR_i = w_i * (cov @ w)_i / sigma_p`` sum to sigma_p and the
    percentages sum to 100, for any real weights including short positions.

    A portfolio with (numerically) zero volatility is flagged ``degenerate``
    instead of raising: contributions are zero and percentages are split
    evenly across assets with non-zero weight.

    Args:
        weights: N weights as fractions or percentages.
        cov: (N, N) covariance matrix in the same asset order.

    Returns:
        RiskContribution with vectors in asset-index order.

    Raises:
        InvalidWeightError: If weights are non-finite or mismatch ``cov``.
        MisalignedSeriesError: If ``cov`` is not a finite square matrix.
    """
    w = normalize_weights(weights)
    cov = _check_covariance(cov, w.size)

    sigma_w = cov @ w
    variance = max(float(w @ sigma_w), 0.0)
    vol = float(np.sqrt(variance))

    scale = float(np.sqrt(np.abs(w) @ np.abs(cov) @ np.abs(w)))
    if scale == 0 or vol <= ZERO_VOLATILITY_RTOL * scale:
        held = w != 0
        n_held = int(held.sum())
        percentages = np.zeros_like(w)
        if n_held:
            percentages[held] = 100.0 / n_held
        logger.warning(
            "compute_risk_contributions: zero portfolio volatility",
            n_assets=int(w.size),
            n_held=n_held,
        )
        return RiskContribution(
            weights=w,
            marginal=np.zeros_like(w),
            absolute=np.zeros_like(w),
            percentages=percentages,
            portfolio_volatility=0.0,
            degenerate=True,
        )

    marginal = sigma_w / vol
    absolute = w * marginal
    percentages = 100.0 * absolute / vol

    return RiskContribution(
        weights=w,
        marginal=marginal,
        absolute=absolute,
        percentages=percentages,
        portfolio_volatility=vol,
        degenerate=False,
    )
