"""
Market data provider.

Fetches a PriceSnapshot for a ticker from the Yahoo Finance chart API.
When the API is disabled, unreachable, or returns something unusable, a
simulated snapshot of the same shape is returned instead so that the
decision cycle always has input.
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

import aiohttp

from tradeflow.config.settings import MarketDataConfig
from tradeflow.decision.models import PriceSnapshot
from tradeflow.errors import MarketDataError

logger = logging.getLogger(__name__)

# Reference prices for simulated quotes
BASE_PRICES: Dict[str, float] = {
    'AAPL': 150.0,
    'GOOGL': 2800.0,
    'MSFT': 350.0,
    'TSLA': 250.0,
    'AMZN': 3200.0,
    'META': 200.0,
    'NVDA': 450.0,
}

DEFAULT_BASE_PRICE = 100.0


def _last_valid(values: Optional[List[Any]]) -> Optional[float]:
    if not values:
        return None
    for value in reversed(values):
        if value is not None:
            return float(value)
    return None


def parse_chart_response(ticker: str, payload: Dict[str, Any], moving_average_window: int = 50) -> PriceSnapshot:
    """
    Build a PriceSnapshot from a chart API payload.

    The moving average is the mean of the last `moving_average_window`
    daily closes; the current price stands in when no closes are present.

    Raises:
        MarketDataError: If the payload has no usable price
    """
    chart = (payload or {}).get('chart') or {}
    if chart.get('error'):
        raise MarketDataError(f"Chart API error for {ticker}: {chart['error']}")

    results = chart.get('result') or []
    if not results:
        raise MarketDataError(f"Chart API returned no result for {ticker}")

    result = results[0] or {}
    meta = result.get('meta') or {}
    quotes = ((result.get('indicators') or {}).get('quote') or [{}])[0] or {}

    closes = [float(c) for c in (quotes.get('close') or []) if c is not None]

    price = meta.get('regularMarketPrice')
    if price is None:
        price = closes[-1] if closes else None
    if price is None or float(price) <= 0:
        raise MarketDataError(f"Chart API returned no price for {ticker}")
    price = float(price)

    window = closes[-moving_average_window:]
    moving_average = sum(window) / len(window) if window else price

    volume = meta.get('regularMarketVolume')
    if volume is None:
        volume = _last_valid(quotes.get('volume'))

    day_high = meta.get('regularMarketDayHigh')
    if day_high is None:
        day_high = _last_valid(quotes.get('high'))

    day_low = meta.get('regularMarketDayLow')
    if day_low is None:
        day_low = _last_valid(quotes.get('low'))

    previous_close = meta.get('previousClose', meta.get('chartPreviousClose'))
    if previous_close is None and len(closes) >= 2:
        previous_close = closes[-2]

    return PriceSnapshot(
        ticker=ticker,
        price=round(price, 2),
        moving_average=round(moving_average, 2),
        volume=float(volume) if volume is not None else None,
        day_high=float(day_high) if day_high is not None else None,
        day_low=float(day_low) if day_low is not None else None,
        previous_close=float(previous_close) if previous_close is not None else None,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def simulate_snapshot(ticker: str, rng: Optional[random.Random] = None) -> PriceSnapshot:
    """
    Generate a plausible snapshot around the ticker's reference price.

    - price: reference ±1%
    - moving average: price × 1.02 or × 0.98
    - volume: 100,000 to 1,100,000
    - day high/low: up to 2% around price
    - previous close: price ±1.5%
    """
    rng = rng or random.Random()
    base_price = BASE_PRICES.get(ticker.upper(), DEFAULT_BASE_PRICE)

    price = base_price + (rng.random() - 0.5) * base_price * 0.02
    trend = 1.02 if rng.random() > 0.5 else 0.98
    moving_average = price * trend
    volume = rng.randrange(100_000, 1_100_000)
    day_high = price * (1 + rng.random() * 0.02)
    day_low = price * (1 - rng.random() * 0.02)
    previous_close = price * (1 + (rng.random() - 0.5) * 0.03)

    return PriceSnapshot(
        ticker=ticker,
        price=round(price, 2),
        moving_average=round(moving_average, 2),
        volume=float(volume),
        day_high=round(day_high, 2),
        day_low=round(day_low, 2),
        previous_close=round(previous_close, 2),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


class MarketDataProvider:
    """
    Quote fetcher with simulated fallback.

    Usage:
        async with MarketDataProvider(config) as provider:
            snapshot = await provider.get_snapshot("AAPL")
    """

    def __init__(self, config: Optional[MarketDataConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or MarketDataConfig()
        self.rng = rng or random.Random()
        self.headers = {
            "Accept": "application/json",
            "User-Agent": "Mozilla/5.0 (tradeflow)",
        }
        self.session: Optional[aiohttp.ClientSession] = None

        # Stats
        self.live_snapshots = 0
        self.simulated_snapshots = 0

        self.logger = logging.getLogger(f"{__name__}.MarketDataProvider")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self.session = aiohttp.ClientSession(timeout=timeout, headers=self.headers)
        return self.session

    async def close(self) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _fetch_chart(self, ticker: str) -> Dict[str, Any]:
        """Fetch raw chart JSON. Raises MarketDataError on any failure."""
        url = f"{self.config.base_url.rstrip('/')}/v8/finance/chart/{ticker}"
        params = {'range': '3mo', 'interval': '1d'}

        try:
            session = await self._get_session()
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise MarketDataError(f"Chart API {response.status} for {ticker}: {error_text[:200]}")
                return await response.json(content_type=None)
        except MarketDataError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise MarketDataError(f"Chart API request failed for {ticker}: {e}") from e

    async def fetch_live_snapshot(self, ticker: str) -> PriceSnapshot:
        """
        Fetch a live snapshot.

        Raises:
            MarketDataError: On network, HTTP or payload errors
        """
        payload = await self._fetch_chart(ticker)
        try:
            return parse_chart_response(ticker, payload, self.config.moving_average_window)
        except (AttributeError, IndexError, TypeError, ValueError) as e:
            raise MarketDataError(f"Malformed chart payload for {ticker}: {e}") from e

    async def get_snapshot(self, ticker: str) -> PriceSnapshot:
        """
        Get a snapshot for a ticker, simulating one if the live fetch fails.

        Args:
            ticker: Ticker symbol

        Returns:
            PriceSnapshot (live or simulated)
        """
        ticker = ticker.upper()

        if self.config.use_live_api:
            try:
                snapshot = await self.fetch_live_snapshot(ticker)
                self.live_snapshots += 1
                self.logger.debug(f"Live snapshot for {ticker}: price={snapshot.price} ma={snapshot.moving_average}")
                return snapshot
            except MarketDataError as e:
                self.logger.warning(f"{e} - using simulated data")

        snapshot = simulate_snapshot(ticker, self.rng)
        self.simulated_snapshots += 1
        self.logger.debug(f"Simulated snapshot for {ticker}: price={snapshot.price} ma={snapshot.moving_average}")
        return snapshot

    def get_stats(self) -> dict:
        return {
            'use_live_api': self.config.use_live_api,
            'live_snapshots': self.live_snapshots,
            'simulated_snapshots': self.simulated_snapshots,
        }
