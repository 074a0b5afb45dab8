"""
Market data module.

Provides PriceSnapshots from the quote API with a simulated fallback.
"""

from .provider import (
    MarketDataProvider,
    parse_chart_response,
    simulate_snapshot,
    BASE_PRICES,
)

__all__ = [
    'MarketDataProvider',
    'parse_chart_response',
    'simulate_snapshot',
    'BASE_PRICES',
]
