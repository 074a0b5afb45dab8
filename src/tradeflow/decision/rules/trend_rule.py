"""
RULE #4: Intraday trend (Weight: 1.4)

Locates the price inside the day's high/low range. Upper range reads as
bullish; the lower range is flagged as oversold.
"""

import logging

from tradeflow.decision.models import PriceSnapshot, RuleKind, RuleResult
from tradeflow.decision.rules.base import RuleEvaluator

logger = logging.getLogger(__name__)


class TrendRule(RuleEvaluator):
    """
    RULE #4: Position in daily range (weight: 1.4)

    position = (price - day_low) / (day_high - day_low)

    Confidence bands:
    - position > 0.8: 80 (near high)
    - position > 0.6: 60 (upper middle)
    - position < 0.3: 75 (near low, potential bounce)
    - position < 0.5: 50 (lower middle)
    - otherwise: 30 (middle range)

    Triggered only when the day's range exceeds min_range_pct (2%) of
    price. Missing high/low or an empty range yields "insufficient data".
    """

    kind = RuleKind.TREND

    def __init__(self, weight: float = 1.4, bullish_position: float = 0.7, min_range_pct: float = 0.02):
        super().__init__(weight)
        self.bullish_position = bullish_position
        self.min_range_pct = min_range_pct

    def _insufficient(self) -> RuleResult:
        return RuleResult(
            is_bullish=False,
            triggered=False,
            rule="trend: insufficient data",
            confidence=0.0,
            kind=self.kind,
        )

    @staticmethod
    def _confidence_for(position: float) -> float:
        if position > 0.8:
            return 80.0
        elif position > 0.6:
            return 60.0
        elif position < 0.3:
            return 75.0
        elif position < 0.5:
            return 50.0
        return 30.0

    async def evaluate(self, snapshot: PriceSnapshot) -> RuleResult:
        if snapshot.day_high is None or snapshot.day_low is None:
            result = self._insufficient()
            self.log_result(result)
            return result

        price = float(snapshot.price)
        day_high = float(snapshot.day_high)
        day_low = float(snapshot.day_low)
        day_range = day_high - day_low

        if day_range <= 0:
            result = self._insufficient()
            self.log_result(result)
            return result

        position = (price - day_low) / day_range
        is_bullish = position > self.bullish_position

        if is_bullish:
            description = "trend: bullish (upper range)"
        elif position < 0.3:
            description = "trend: oversold (lower range)"
        else:
            description = "trend: neutral (mid-range)"

        result = RuleResult(
            is_bullish=is_bullish,
            triggered=day_range > price * self.min_range_pct,
            rule=description,
            confidence=self._confidence_for(position),
            kind=self.kind,
        )
        self.log_result(result)
        return result
