"""Lookback horizons and the minimum-sample guard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, TypeVar

import pandas as pd

from risk_attribution.errors import InsufficientDataError

T = TypeVar("T")

TRADING_DAYS_PER_YEAR = 252

DEFAULT_HORIZONS: dict[str, int] = {
    "1y": TRADING_DAYS_PER_YEAR,
    "3y": 3 * TRADING_DAYS_PER_YEAR,
    "5y": 5 * TRADING_DAYS_PER_YEAR,
    "short": TRADING_DAYS_PER_YEAR,
    "medium": 3 * TRADING_DAYS_PER_YEAR,
    "long": 5 * TRADING_DAYS_PER_YEAR,
}


@dataclass(frozen=True)
class LookbackPolicy:
    """
    Map horizon labels to trading-day windows.

    Attributes:
        horizons: Label -> number of trading-day observations.
        default_days: Window used for labels not found in ``horizons``.
        minimum_sample: Smallest reconciled window accepted.
    """

    horizons: Mapping[str, int] = field(
        default_factory=lambda: dict(DEFAULT_HORIZONS)
    )
    default_days: int = 5 * TRADING_DAYS_PER_YEAR
    minimum_sample: int = 20

    def __post_init__(self) -> None:
        normalized = {str(k).strip().lower(): int(v) for k, v in self.horizons.items()}
        object.__setattr__(self, "horizons", normalized)
        if self.minimum_sample < 2:
            raise ValueError("minimum_sample must be at least 2")
        if self.default_days < self.minimum_sample:
            raise ValueError("default_days must not be below minimum_sample")

    def window(self, label: str | None) -> int:
        """Requested number of observations for a horizon label."""
        if label is None:
            return self.default_days
        return self.horizons.get(label.strip().lower(), self.default_days)

    def reconcile(self, label: str | None, available: int) -> int:
        """
        Number of most recent observations to use.

        The lesser of the requested window and what is available; raises
        ``InsufficientDataError`` when that falls below ``minimum_sample``.
        """
        count = min(self.window(label), int(available))
        if count < self.minimum_sample:
            raise InsufficientDataError(
                f"Only {count} observations available for lookback "
                f"{label!r}; at least {self.minimum_sample} required"
            )
        return count

    def trim(self, prices: T, label: str | None) -> T:
        """Keep exactly the most recent reconciled observations."""
        count = self.reconcile(label, len(prices))
        if isinstance(prices, (pd.Series, pd.DataFrame)):
            return prices.iloc[-count:]
        return prices[-count:]
