"""
Exception classes for tradeflow.

The decision core performs no I/O and raises none of these; they belong to
the collaborators around it (configuration, market data, storage).
"""


# ============================================================================
# Exception Classes
# ============================================================================

class TradeflowError(Exception):
    """Base exception for tradeflow errors."""
    pass


class ConfigurationError(TradeflowError):
    """Exception raised for missing or invalid configuration."""
    pass


class MarketDataError(TradeflowError):
    """Exception raised when a quote cannot be fetched or parsed."""
    pass


class PersistenceError(TradeflowError):
    """Exception raised when a decision cannot be written."""
    pass
