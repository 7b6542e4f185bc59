"""Return, Sharpe ratio and drawdown metrics for a set of weights."""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd


def expected_return(
    weights: Sequence[float] | np.ndarray,
    mean_returns: Sequence[float] | np.ndarray,
) -> float:
    """Weighted mean return, in the units of ``mean_returns``."""
    return float(np.dot(np.asarray(weights, dtype=float), np.asarray(mean_returns, dtype=float)))


def sharpe_ratio(
    portfolio_return: float,
    volatility: float,
    risk_free_rate: float = 0.0,
) -> float:
    """(return - risk free) / volatility; 0 for a zero-volatility portfolio."""
    if volatility == 0:
        return 0.0
    return float((portfolio_return - risk_free_rate) / volatility)


def max_drawdown(prices: Sequence[float] | np.ndarray | pd.Series) -> float:
    """Largest peak-to-trough decline of a price path (<= 0)."""
    series = pd.Series(np.asarray(prices, dtype=float))
    if series.empty:
        return 0.0
    running_max = series.cummax()
    drawdown = (series - running_max) / running_max
    return float(drawdown.min())


def weighted_max_drawdown(
    weights: Sequence[float] | np.ndarray,
    asset_drawdowns: Sequence[float] | np.ndarray,
) -> float:
    """
    Approximate portfolio drawdown as the weight-averaged asset drawdowns.

    This ignores diversification across the timing of each asset's trough, so
    it is a conservative estimate rather than the drawdown of the rebalanced
    portfolio path.
    """
    return float(np.dot(np.asarray(weights, dtype=float), np.asarray(asset_drawdowns, dtype=float)))
