"""Risk budgeting and Equal Risk Contribution (ERC) weights."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import structlog

from risk_attribution.decomposition import (
    RiskContribution,
    compute_risk_contributions,
    normalize_weights,
)
from risk_attribution.errors import InvalidWeightError, MisalignedSeriesError
from risk_attribution.metrics import expected_return, sharpe_ratio, weighted_max_drawdown

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BudgetResult:
    """
    Outcome of a risk-budget optimization.

    ``weights`` are the fully invested (sum to one) budget weights. When a
    volatility target is set they are multiplied by ``scaling_factor`` to give
    ``scaled_weights``; the remainder ``cash_weight`` is held in cash, and a
    negative value is leverage. Risk shares are unchanged by the scaling.
    """

    weights: np.ndarray
    budgets: np.ndarray
    contributions: RiskContribution
    converged: bool
    iterations: int
    target_volatility: float | None = None
    scaling_factor: float = 1.0
    expected_return: float | None = None
    sharpe_ratio: float | None = None
    max_drawdown: float | None = None

    @property
    def natural_volatility(self) -> float:
        """Volatility of the unscaled budget weights."""
        return self.contributions.portfolio_volatility

    @property
    def portfolio_volatility(self) -> float:
        """Volatility after volatility targeting."""
        return self.natural_volatility * self.scaling_factor

    @property
    def scaled_weights(self) -> np.ndarray:
        return self.weights * self.scaling_factor

    @property
    def cash_weight(self) -> float:
        return 1.0 - self.scaling_factor

    def to_dict(self) -> dict:
        return {
            "weights": self.weights.tolist(),
            "scaled_weights": self.scaled_weights.tolist(),
            "budgets": self.budgets.tolist(),
            "risk_contributions": self.contributions.percentages.tolist(),
            "natural_volatility": self.natural_volatility,
            "portfolio_volatility": self.portfolio_volatility,
            "target_volatility": self.target_volatility,
            "scaling_factor": self.scaling_factor,
            "cash_weight": self.cash_weight,
            "expected_return": self.expected_return,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "converged": self.converged,
            "iterations": self.iterations,
        }


def _resolve_budgets(budgets: Sequence[float] | None, n_assets: int) -> np.ndarray:
    if budgets is None:
        return np.full(n_assets, 1.0 / n_assets)

    b = normalize_weights(budgets)
    if b.size != n_assets:
        raise InvalidWeightError(
            f"Budgets length {b.size} must match number of assets {n_assets}"
        )
    if np.any(b < 0):
        raise InvalidWeightError("Risk budgets must be non-negative")
    if abs(float(b.sum()) - 1.0) > 1e-6:
        raise InvalidWeightError(f"Risk budgets must sum to 1. Current sum: {b.sum():.6f}")
    return b


def _per_asset(values: Sequence[float] | np.ndarray, n_assets: int, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.shape != (n_assets,):
        raise MisalignedSeriesError(
            f"{name} must have one value per asset ({n_assets}), got shape {arr.shape}"
        )
    return arr


def scaling_for_target(natural_volatility: float, target_volatility: float | None) -> float:
    """Factor that moves ``natural_volatility`` onto ``target_volatility``."""
    if target_volatility is None:
        return 1.0
    if not np.isfinite(target_volatility) or target_volatility <= 0:
        raise ValueError(f"Target volatility must be positive, got {target_volatility}")
    if natural_volatility == 0:
        logger.warning(
            "scaling_for_target: zero volatility, weights left unscaled",
            target_volatility=target_volatility,
        )
        return 1.0
    return float(target_volatility / natural_volatility)


def optimize_risk_budget(
    cov: np.ndarray,
    budgets: Sequence[float] | None = None,
    max_iterations: int = 1000,
    tolerance: float = 1e-6,
    target_volatility: float | None = None,
    mean_returns: Sequence[float] | np.ndarray | None = None,
    asset_drawdowns: Sequence[float] | np.ndarray | None = None,
    risk_free_rate: float = 0.0,
) -> BudgetResult:
    """
    Long-only weights whose risk contributions match target budgets.

    Cyclical coordinate descent: each asset's weight is set to
    ``budget_i * sigma_p / MRC_i`` in turn, where ``MRC_i = (cov @ w)_i /
    sigma_p``, then weights are rescaled to sum to one. Iteration stops when
    the L1 change of a full sweep drops below ``tolerance``.

    Args:
        cov: (N, N) covariance matrix.
        budgets: Target risk shares as fractions or percentages. Defaults to
            equal risk contribution (1/N each).
        max_iterations: Upper bound on full sweeps.
        tolerance: Convergence threshold on the L1 weight change.
        target_volatility: Scale the weights so the portfolio volatility
            equals this value, in the units of ``cov``.
        mean_returns: Per-asset mean returns in the units of ``cov``; enables
            the expected return and Sharpe ratio.
        asset_drawdowns: Per-asset maximum drawdowns (<= 0); enables the
            weighted portfolio drawdown.
        risk_free_rate: Subtracted from the expected return in the Sharpe ratio.
    """
    cov = np.asarray(cov, dtype=float)
    if cov.ndim != 2 or cov.shape[0] != cov.shape[1] or cov.shape[0] == 0:
        raise MisalignedSeriesError(f"Covariance matrix must be square, got shape {cov.shape}")

    n_assets = cov.shape[0]
    targets = _resolve_budgets(budgets, n_assets)
    weights = np.full(n_assets, 1.0 / n_assets)

    converged = False
    iteration = 0
    while iteration < max_iterations and not converged:
        iteration += 1
        previous = weights.copy()

        for i in range(n_assets):
            sigma_w = cov @ weights
            vol = float(np.sqrt(max(float(weights @ sigma_w), 0.0)))
            if vol == 0:
                continue
            mrc = sigma_w[i] / vol
            if mrc > 0:
                weights[i] = targets[i] * vol / mrc

        total = weights.sum()
        if total > 0:
            weights = weights / total

        if np.abs(weights - previous).sum() < tolerance:
            converged = True

    if not converged:
        logger.warning(
            "optimize_risk_budget: did not converge",
            iterations=iteration,
            tolerance=tolerance,
        )

    contributions = compute_risk_contributions(weights, cov)
    scaling = scaling_for_target(contributions.portfolio_volatility, target_volatility)
    if target_volatility is not None:
        logger.info(
            "optimize_risk_budget: volatility targeting",
            natural_volatility=contributions.portfolio_volatility,
            target_volatility=target_volatility,
            scaling_factor=scaling,
        )

    exp_ret = sharpe = drawdown = None
    if mean_returns is not None:
        exp_ret = expected_return(
            weights * scaling, _per_asset(mean_returns, n_assets, "Mean returns")
        )
        sharpe = sharpe_ratio(
            exp_ret, contributions.portfolio_volatility * scaling, risk_free_rate
        )
    if asset_drawdowns is not None:
        drawdown = scaling * weighted_max_drawdown(
            weights, _per_asset(asset_drawdowns, n_assets, "Asset drawdowns")
        )

    return BudgetResult(
        weights=weights,
        budgets=targets,
        contributions=contributions,
        converged=converged,
        iterations=iteration,
        target_volatility=target_volatility,
        scaling_factor=scaling,
        expected_return=exp_ret,
        sharpe_ratio=sharpe,
        max_drawdown=drawdown,
    )
