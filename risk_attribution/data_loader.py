"""Load weight and price data from CSV files."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd
import structlog

from risk_attribution.errors import InvalidWeightError
from risk_attribution.portfolio import Portfolio

logger = structlog.get_logger(__name__)


def load_portfolio(
    weights_path: str | Path,
    prices_path: str | Path,
) -> Portfolio:
    """
    Build a Portfolio from two CSV files.

    Args:
        weights_path: Path to CSV with columns [ticker, weight].
        prices_path: Path to CSV with a 'date' column and one column per ticker.

    Returns:
        A Portfolio whose prices are restricted to dates every ticker trades.
    """
    weights = load_weights(weights_path)
    prices = load_prices(prices_path)
    tickers = weights.index.tolist()
    missing = [t for t in tickers if t not in prices.columns]
    if missing:
        raise ValueError(f"Historical prices missing tickers: {missing}")
    return Portfolio(weights=weights, historical_prices=align_prices(prices, tickers))


def load_weights(path: str | Path) -> pd.Series:
    """Load a weights CSV into a Series indexed by ticker."""
    df = _read_csv(path)
    required = {"ticker", "weight"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Weights CSV missing columns: {missing}")

    df["ticker"] = df["ticker"].astype(str).str.strip()
    duplicated = df.loc[df["ticker"].duplicated(), "ticker"].tolist()
    if duplicated:
        raise InvalidWeightError(f"Duplicate tickers in weights: {duplicated}")

    weights = pd.to_numeric(df["weight"], errors="coerce")
    weights.index = df["ticker"]
    return weights.rename("weight")


def load_prices(path: str | Path) -> pd.DataFrame:
    """Load a historical prices CSV into a DataFrame."""
    df = _read_csv(path)
    if "date" not in df.columns:
        raise ValueError("Prices CSV must contain a 'date' column")
    df["date"] = pd.to_datetime(df["date"])
    return df.sort_values("date").reset_index(drop=True)


def align_prices(prices: pd.DataFrame, tickers: Sequence[str]) -> pd.DataFrame:
    """
    Restrict prices to the dates on which every ticker has a close.

    Gaps are never forward-filled: a filled price would create a false zero
    return and shift the calendar of one asset against the others.
    """
    columns = ["date", *tickers]
    subset = prices[columns]
    aligned = subset.dropna(subset=list(tickers)).reset_index(drop=True)

    dropped = len(subset) - len(aligned)
    if dropped:
        logger.info(
            "align_prices: dropped dates missing a price",
            dropped_rows=dropped,
            kept_rows=len(aligned),
        )
    return aligned


def _read_csv(path: str | Path) -> pd.DataFrame:
    """Read a CSV, raising a clear error if the file is missing."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    return pd.read_csv(path)
