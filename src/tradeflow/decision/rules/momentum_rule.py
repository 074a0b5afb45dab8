"""
RULE #3: Momentum (Weight: 1.3)

Day-over-day price change relative to the previous close.
"""

import logging

from tradeflow.decision.models import PriceSnapshot, RuleKind, RuleResult
from tradeflow.decision.rules.base import RuleEvaluator

logger = logging.getLogger(__name__)


class MomentumRule(RuleEvaluator):
    """
    RULE #3: Momentum from previous close (weight: 1.3)

    Scoring Logic:
    - change > 1%: bullish
    - |change| > 0.5%: triggered
    - Confidence = |change| * 1000, capped at 100

    Without a previous close the current price stands in for it, so the
    change is zero and the rule never triggers.
    """

    kind = RuleKind.MOMENTUM

    def __init__(self, weight: float = 1.3, bullish_pct: float = 0.01, trigger_pct: float = 0.005):
        super().__init__(weight)
        self.bullish_pct = bullish_pct
        self.trigger_pct = trigger_pct

    async def evaluate(self, snapshot: PriceSnapshot) -> RuleResult:
        price = float(snapshot.price)
        previous_close = snapshot.previous_close
        if previous_close is None or previous_close <= 0:
            previous_close = price

        # price itself may be zero in a degenerate snapshot
        price_change = (price - previous_close) / previous_close if previous_close else 0.0

        result = RuleResult(
            is_bullish=price_change > self.bullish_pct,
            triggered=abs(price_change) > self.trigger_pct,
            rule=f"momentum: {price_change * 100:.2f}%",
            confidence=min(abs(price_change) * 1000, 100.0),
            kind=self.kind,
        )
        self.log_result(result)
        return result
