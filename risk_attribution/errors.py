"""Exception types raised by the risk attribution engine."""

from __future__ import annotations


class RiskAttributionError(ValueError):
    """Base class for malformed input rejected by the engine."""


class InsufficientDataError(RiskAttributionError):
    """Fewer observations than the computation can use."""


class MisalignedSeriesError(RiskAttributionError):
    """Per-asset series do not share a length or a calendar."""


class InvalidWeightError(RiskAttributionError):
    """Weight vector does not match the asset index or holds non-finite values."""


class InvalidPriceError(RiskAttributionError):
    """Price data contains non-positive or non-finite values."""
