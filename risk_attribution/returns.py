"""Simple return calculations from ordered price series."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from risk_attribution.errors import InsufficientDataError, MisalignedSeriesError


def compute_returns(prices: Sequence[float] | np.ndarray) -> np.ndarray:
    """
    Convert an ordered price series into simple period returns.

    ``r[i] = (p[i + 1] - p[i]) / p[i]``. Prices must already be positive and
    finite; nothing is dropped here, since removing a point would shift this
    asset's calendar relative to the others.

    Args:
        prices: Chronological sequence of at least two prices.

    Returns:
        Array of ``len(prices) - 1`` returns.
    """
    p = np.asarray(prices, dtype=float).ravel()
    if p.size < 2:
        raise InsufficientDataError(
            f"Need at least 2 prices to compute returns, got {p.size}"
        )
    return (p[1:] - p[:-1]) / p[:-1]


def returns_matrix(price_series: Sequence[Sequence[float]]) -> np.ndarray:
    """Stack per-asset returns into an (n_assets, n_periods) array."""
    series = [np.asarray(p, dtype=float).ravel() for p in price_series]
    if not series:
        raise InsufficientDataError("No price series supplied")

    lengths = {s.size for s in series}
    if len(lengths) > 1:
        raise MisalignedSeriesError(
            f"Price series have different lengths: {sorted(lengths)}"
        )
    return np.vstack([compute_returns(s) for s in series])
