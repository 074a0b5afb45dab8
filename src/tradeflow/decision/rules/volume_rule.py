"""
RULE #2: Volume anomaly (Weight: 1.2)

Compares the snapshot's volume against an expected average daily volume
for the ticker. Unusually high or unusually low volume triggers the rule.
"""

from typing import Dict, Optional
import logging

from tradeflow.decision.models import PriceSnapshot, RuleKind, RuleResult
from tradeflow.decision.rules.base import RuleEvaluator

logger = logging.getLogger(__name__)

# Expected average daily volume per ticker
DEFAULT_AVERAGE_VOLUMES: Dict[str, float] = {
    'AAPL': 50_000_000,
    'GOOGL': 20_000_000,
    'MSFT': 25_000_000,
    'TSLA': 100_000_000,
    'AMZN': 60_000_000,
    'META': 30_000_000,
    'NVDA': 40_000_000,
}

FALLBACK_AVERAGE_VOLUME = 1_000_000


class VolumeRule(RuleEvaluator):
    """
    RULE #2: Volume vs expected average (weight: 1.2)

    Scoring Logic:
    - ratio > 1.2: high volume (triggered, bullish)
    - ratio < 0.5: low volume (triggered, bearish)
    - ratio > 2.0: very high volume, always bullish
    - otherwise: normal volume (not triggered)
    - Confidence = |ratio - 1| in percent, capped at 100

    Missing volume counts as zero volume.
    """

    kind = RuleKind.VOLUME

    def __init__(
        self,
        weight: float = 1.2,
        average_volumes: Optional[Dict[str, float]] = None,
        default_average_volume: float = FALLBACK_AVERAGE_VOLUME,
        high_ratio: float = 1.2,
        low_ratio: float = 0.5,
        very_high_ratio: float = 2.0,
    ):
        super().__init__(weight)
        self.average_volumes = dict(DEFAULT_AVERAGE_VOLUMES if average_volumes is None else average_volumes)
        self.default_average_volume = default_average_volume if default_average_volume > 0 else FALLBACK_AVERAGE_VOLUME
        self.high_ratio = high_ratio
        self.low_ratio = low_ratio
        self.very_high_ratio = very_high_ratio

    def average_volume_for(self, ticker: str) -> float:
        avg_volume = self.average_volumes.get(ticker.upper())
        if avg_volume is None or avg_volume <= 0:
            return self.default_average_volume
        return float(avg_volume)

    async def evaluate(self, snapshot: PriceSnapshot) -> RuleResult:
        avg_volume = self.average_volume_for(snapshot.ticker)
        volume = float(snapshot.volume) if snapshot.volume is not None else 0.0
        volume_ratio = volume / avg_volume

        is_high_volume = volume_ratio > self.high_ratio
        is_low_volume = volume_ratio < self.low_ratio

        is_bullish = True
        if is_low_volume:
            is_bullish = False
        elif volume_ratio > self.very_high_ratio:
            is_bullish = True

        description = f"volume ratio: {volume_ratio * 100:.1f}%"
        if is_high_volume:
            description += " (high volume)"
        elif is_low_volume:
            description += " (low volume)"
        else:
            description += " (normal volume)"

        result = RuleResult(
            is_bullish=is_bullish,
            triggered=is_high_volume or is_low_volume,
            rule=description,
            confidence=min(abs(volume_ratio - 1) * 100, 100.0),
            kind=self.kind,
        )
        self.log_result(result)
        return result
