"""Risk attribution for a portfolio over a lookback window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import structlog

from risk_attribution.budgeting import BudgetResult, optimize_risk_budget
from risk_attribution.covariance import average_correlation, correlation_matrix
from risk_attribution.decomposition import RiskContribution, compute_risk_contributions
from risk_attribution.lookback import TRADING_DAYS_PER_YEAR, LookbackPolicy
from risk_attribution.metrics import max_drawdown
from risk_attribution.portfolio import Portfolio

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AttributionReport:
    """Immutable container for a portfolio's risk attribution."""

    tickers: list[str]
    weights: np.ndarray
    absolute: np.ndarray
    percentages: np.ndarray
    marginal: np.ndarray
    asset_volatilities: np.ndarray
    portfolio_volatility: float
    degenerate: bool
    observations: int
    lookback: str | None
    average_correlation: float

    def to_dict(self) -> dict:
        assets = {
            ticker: {
                "weight": round(float(self.weights[i]), 6),
                "risk_contribution": round(float(self.absolute[i]), 6),
                "risk_contribution_pct": round(float(self.percentages[i]), 4),
                "marginal_risk": round(float(self.marginal[i]), 6),
                "volatility": round(float(self.asset_volatilities[i]), 6),
            }
            for i, ticker in enumerate(self.tickers)
        }
        return {
            "lookback": self.lookback,
            "observations": self.observations,
            "portfolio_volatility": round(self.portfolio_volatility, 6),
            "degenerate": self.degenerate,
            "average_correlation": round(self.average_correlation, 4),
            "assets": assets,
        }


class RiskAttributor:
    """Run the returns -> covariance -> decomposition pipeline for a portfolio."""

    def __init__(
        self,
        portfolio: Portfolio,
        lookback: str | None = "5y",
        policy: LookbackPolicy | None = None,
        periods_per_year: int | None = TRADING_DAYS_PER_YEAR,
    ) -> None:
        """
        Args:
            portfolio: Portfolio instance.
            lookback: Horizon label, e.g. '1y', '3y', '5y'.
            policy: Lookback policy (default windows, minimum sample of 20).
            periods_per_year: Annualization factor for covariance and
                volatilities; None keeps daily units.
        """
        self.portfolio = portfolio
        self.lookback = lookback
        self.policy = policy or LookbackPolicy()
        self.periods_per_year = periods_per_year

        # Raises InsufficientDataError when the window is too short.
        self._window = portfolio.window_prices(lookback, self.policy)
        self._observations = len(self._window)

    # ------------------------------------------------------------------
    # Covariance
    # ------------------------------------------------------------------

    def covariance(self) -> np.ndarray:
        """Sample covariance of the windowed returns, annualized if configured."""
        return self.portfolio.covariance_matrix(
            self.lookback, self.policy, self.periods_per_year
        ).to_numpy()

    def asset_volatilities(self) -> np.ndarray:
        return np.sqrt(np.clip(np.diag(self.covariance()), 0.0, None))

    def correlation(self) -> np.ndarray:
        return correlation_matrix(self.covariance())

    def average_correlation(self) -> float:
        return average_correlation(self.correlation())

    # ------------------------------------------------------------------
    # Return and drawdown
    # ------------------------------------------------------------------

    def mean_returns(self) -> np.ndarray:
        """Mean simple return per asset, annualized if configured."""
        daily = self.portfolio.daily_returns(self.lookback, self.policy)
        means = daily.mean().to_numpy(dtype=float)
        if self.periods_per_year:
            means = means * self.periods_per_year
        return means

    def max_drawdowns(self) -> np.ndarray:
        """Maximum drawdown of each asset's prices over the window (<= 0)."""
        return np.array([max_drawdown(self._window[t]) for t in self.portfolio.tickers])

    # ------------------------------------------------------------------
    # Risk budgeting
    # ------------------------------------------------------------------

    def optimize(
        self,
        budgets: Sequence[float] | None = None,
        target_volatility: float | None = None,
        risk_free_rate: float = 0.0,
    ) -> BudgetResult:
        """Risk-budget weights for this portfolio's assets, with return metrics."""
        return optimize_risk_budget(
            self.covariance(),
            budgets=budgets,
            target_volatility=target_volatility,
            mean_returns=self.mean_returns(),
            asset_drawdowns=self.max_drawdowns(),
            risk_free_rate=risk_free_rate,
        )

    # ------------------------------------------------------------------
    # Decomposition
    # ------------------------------------------------------------------

    def contributions(self) -> RiskContribution:
        return compute_risk_contributions(self.portfolio.weight_vector, self.covariance())

    def compute_all(self) -> AttributionReport:
        """Compute the attribution and return an AttributionReport."""
        cov = self.covariance()
        result = compute_risk_contributions(self.portfolio.weight_vector, cov)

        flat = [
            t for t, var in zip(self.portfolio.tickers, np.diag(cov)) if var == 0
        ]
        if flat:
            logger.warning("compute_all: zero-variance assets", tickers=flat)

        logger.info(
            "compute_all: risk attribution",
            n_assets=len(self.portfolio.tickers),
            observations=self._observations,
            portfolio_volatility=result.portfolio_volatility,
            degenerate=result.degenerate,
        )

        return AttributionReport(
            tickers=list(self.portfolio.tickers),
            weights=result.weights,
            absolute=result.absolute,
            percentages=result.percentages,
            marginal=result.marginal,
            asset_volatilities=np.sqrt(np.clip(np.diag(cov), 0.0, None)),
            portfolio_volatility=result.portfolio_volatility,
            degenerate=result.degenerate,
            observations=self._observations,
            lookback=self.lookback,
            average_correlation=average_correlation(correlation_matrix(cov)),
        )
