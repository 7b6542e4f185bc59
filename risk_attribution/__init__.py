"""
Portfolio Risk Attribution - what share of portfolio risk each holding carries.

Converts historical price series into an Euler decomposition of portfolio
volatility: simple returns, a sample covariance matrix, and per-asset
absolute and percentage risk contributions, independent of capital weight.
"""

from risk_attribution.covariance import compute_covariance
from risk_attribution.decomposition import RiskContribution, compute_risk_contributions
from risk_attribution.errors import (
    InsufficientDataError,
    InvalidPriceError,
    InvalidWeightError,
    MisalignedSeriesError,
    RiskAttributionError,
)
from risk_attribution.lookback import LookbackPolicy
from risk_attribution.returns import compute_returns

__version__ = "1.0.0"

__all__ = [
    "InsufficientDataError",
    "InvalidPriceError",
    "InvalidWeightError",
    "LookbackPolicy",
    "MisalignedSeriesError",
    "RiskAttributionError",
    "RiskContribution",
    "compute_covariance",
    "compute_returns",
    "compute_risk_contributions",
]
