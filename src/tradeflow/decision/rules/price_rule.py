"""
RULE #1: Price vs 50-day moving average (Weight: 1.5)

Bullish when price trades above its 50-DMA. Only triggers when the
deviation from the average is larger than 1%.
"""

import logging

from tradeflow.decision.models import PriceSnapshot, RuleKind, RuleResult
from tradeflow.decision.rules.base import RuleEvaluator

logger = logging.getLogger(__name__)

RULE_LABEL = "price > 50-DMA"


class PriceRule(RuleEvaluator):
    """
    RULE #1: Price vs moving average (weight: 1.5)

    Scoring Logic:
    - Bullish if price > moving average
    - Triggered if |price - MA| / MA > trigger_pct (1%)
    - Confidence = deviation in percent, capped at 100

    The description gets a "+ gap up" / "+ gap down" suffix when price
    moved more than gap_pct (2%) from the previous close. Without a
    previous close the moving average stands in for it.
    """

    kind = RuleKind.PRICE

    def __init__(self, weight: float = 1.5, trigger_pct: float = 0.01, gap_pct: float = 0.02):
        super().__init__(weight)
        self.trigger_pct = trigger_pct
        self.gap_pct = gap_pct

    async def evaluate(self, snapshot: PriceSnapshot) -> RuleResult:
        price = float(snapshot.price)
        moving_average = float(snapshot.moving_average)

        if moving_average <= 0:
            result = RuleResult(
                is_bullish=False,
                triggered=False,
                rule=f"{RULE_LABEL}: no moving average",
                confidence=0.0,
                kind=self.kind,
            )
            self.log_result(result)
            return result

        price_diff = abs(price - moving_average) / moving_average
        confidence = round(min(price_diff * 100, 100.0), 2)

        previous_close = snapshot.previous_close
        if previous_close is None or previous_close <= 0:
            previous_close = moving_average
        gap = (price - previous_close) / previous_close

        description = RULE_LABEL
        if gap > self.gap_pct:
            description += " + gap up"
        elif gap < -self.gap_pct:
            description += " + gap down"

        result = RuleResult(
            is_bullish=price > moving_average,
            triggered=price_diff > self.trigger_pct,
            rule=description,
            confidence=confidence,
            kind=self.kind,
        )
        self.log_result(result)
        return result
