"""Portfolio data and the symbol <-> index boundary of the engine."""

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np
import pandas as pd

from risk_attribution.covariance import (
    annualize_covariance,
    compute_covariance,
    correlation_matrix,
)
from risk_attribution.decomposition import normalize_weights
from risk_attribution.errors import (
    InsufficientDataError,
    InvalidPriceError,
    InvalidWeightError,
    MisalignedSeriesError,
)
from risk_attribution.lookback import TRADING_DAYS_PER_YEAR, LookbackPolicy
from risk_attribution.returns import returns_matrix


def validate_prices(prices: pd.DataFrame, tickers: Sequence[str]) -> None:
    """Reject gaps and non-positive or non-finite prices for ``tickers``."""
    values = prices[list(tickers)].apply(pd.to_numeric, errors="coerce")

    gaps = [t for t in tickers if values[t].isna().any()]
    if gaps:
        raise MisalignedSeriesError(f"Price gaps (missing dates) for tickers: {gaps}")

    arr = values.to_numpy(dtype=float)
    bad = ~np.isfinite(arr) | (arr <= 0)
    if bad.any():
        affected = [t for t, col_bad in zip(tickers, bad.any(axis=0)) if col_bad]
        raise InvalidPriceError(f"Non-positive or non-finite prices for tickers: {affected}")


class Portfolio:
    """Target weights plus aligned historical closes for the same tickers.

    The order of ``weights`` fixes the asset index: every vector and matrix
    handed to the numeric core is positioned by ``self.tickers``.
    """

    def __init__(
        self,
        weights: Mapping[str, float] | pd.Series,
        historical_prices: pd.DataFrame,
    ) -> None:
        """
        Initialize a Portfolio.

        Args:
            weights: Ticker -> target weight, as fractions or percentages.
            historical_prices: DataFrame with a 'date' column and one column
                per ticker containing daily closing prices on a shared
                calendar.
        """
        weights = pd.Series(weights, dtype=float) if not isinstance(weights, pd.Series) else weights
        self._validate_weights(weights)
        self._validate_prices(historical_prices, weights.index.tolist())

        self.tickers: list[str] = [str(t) for t in weights.index]
        self.weights: pd.Series = pd.Series(
            normalize_weights(weights.to_numpy(dtype=float)),
            index=self.tickers,
            name="weight",
        )

        prices = historical_prices[["date", *weights.index]].copy()
        prices.columns = ["date", *self.tickers]
        prices["date"] = pd.to_datetime(prices["date"])
        self.prices: pd.DataFrame = prices.sort_values("date").reset_index(drop=True)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_weights(weights: pd.Series) -> None:
        if weights.empty:
            raise InvalidWeightError("Weights are empty")
        if weights.index.duplicated().any():
            dupes = weights.index[weights.index.duplicated()].tolist()
            raise InvalidWeightError(f"Duplicate tickers in weights: {dupes}")
        values = pd.to_numeric(weights, errors="coerce").to_numpy(dtype=float)
        if not np.all(np.isfinite(values)):
            bad = weights.index[~np.isfinite(values)].tolist()
            raise InvalidWeightError(f"Non-finite weights for tickers: {bad}")

    @staticmethod
    def _validate_prices(prices: pd.DataFrame, tickers: list) -> None:
        if "date" not in prices.columns:
            raise ValueError("Historical prices must contain a 'date' column")
        missing = [t for t in tickers if t not in prices.columns]
        if missing:
            raise ValueError(f"Historical prices missing tickers: {missing}")
        if prices.empty:
            raise InsufficientDataError("Historical prices are empty")
        validate_prices(prices, tickers)

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    @property
    def weight_vector(self) -> np.ndarray:
        """Weights as fractions, aligned with self.tickers."""
        return self.weights.to_numpy(dtype=float)

    @property
    def n_observations(self) -> int:
        return len(self.prices)

    # ------------------------------------------------------------------
    # Returns
    # ------------------------------------------------------------------

    def window_prices(
        self,
        lookback: str | None = None,
        policy: LookbackPolicy | None = None,
    ) -> pd.DataFrame:
        """Most recent prices allowed by the lookback policy."""
        policy = policy or LookbackPolicy()
        return policy.trim(self.prices, lookback).reset_index(drop=True)

    def daily_returns(
        self,
        lookback: str | None = None,
        policy: LookbackPolicy | None = None,
    ) -> pd.DataFrame:
        """Daily simple returns for each ticker over the lookback window."""
        window = self.window_prices(lookback, policy)
        returns = returns_matrix(
            [window[ticker].to_numpy(dtype=float) for ticker in self.tickers]
        )
        return pd.DataFrame(
            returns.T,
            index=window["date"].iloc[1:].to_numpy(),
            columns=self.tickers,
        )

    def covariance_matrix(
        self,
        lookback: str | None = None,
        policy: LookbackPolicy | None = None,
        periods_per_year: int | None = TRADING_DAYS_PER_YEAR,
    ) -> pd.DataFrame:
        """Covariance matrix of asset returns, annualized unless ``periods_per_year`` is None."""
        returns = self.daily_returns(lookback, policy)
        cov = compute_covariance(returns.to_numpy(dtype=float).T)
        if periods_per_year:
            cov = annualize_covariance(cov, periods_per_year)
        return pd.DataFrame(cov, index=self.tickers, columns=self.tickers)

    def correlation_matrix(
        self,
        lookback: str | None = None,
        policy: LookbackPolicy | None = None,
    ) -> pd.DataFrame:
        """Correlation matrix of asset returns."""
        cov = self.covariance_matrix(lookback, policy, periods_per_year=None)
        corr = correlation_matrix(cov.to_numpy())
        return pd.DataFrame(corr, index=self.tickers, columns=self.tickers)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def summary(self) -> dict:
        """Return a summary dictionary of the portfolio."""
        return {
            "tickers": self.tickers,
            "weights": dict(zip(self.tickers, self.weight_vector.tolist())),
            "observations": self.n_observations,
            "start_date": self.prices["date"].iloc[0].date().isoformat(),
            "end_date": self.prices["date"].iloc[-1].date().isoformat(),
        }
