"""
Signal Aggregator

Combines the four rule results into one weighted BUY/SELL/HOLD verdict.

DEFAULT WEIGHTS:
- Price vs 50-DMA: 1.5
- Volume anomaly: 1.2
- Momentum: 1.3
- Intraday trend: 1.4

Only triggered rules vote. Bullish and bearish weights are summed and the
heavier side wins if it outweighs the other by buy_sell_ratio (1.2x).
Strong agreement (> 60% of the triggered weight on one side) boosts the
confidence by boost_factor (1.3x), capped at 1.0.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from tradeflow.decision.models import (
    MultiRuleResult,
    PriceSnapshot,
    RuleKind,
    RuleResult,
    Signal,
)
from tradeflow.decision.rules.base import RuleEvaluator

logger = logging.getLogger(__name__)

DEFAULT_RULE_WEIGHTS: Dict[RuleKind, float] = {
    RuleKind.PRICE: 1.5,
    RuleKind.VOLUME: 1.2,
    RuleKind.MOMENTUM: 1.3,
    RuleKind.TREND: 1.4,
}

UNKNOWN_RULE_WEIGHT = 1.0


class SignalAggregator:
    """
    Runs the rule evaluators and aggregates their results.

    aggregate() is a pure function of the rule results: no side effects,
    no state, same input gives the same verdict. evaluate() runs all
    evaluators concurrently and then aggregates.
    """

    def __init__(
        self,
        evaluators: Sequence[RuleEvaluator],
        weights: Optional[Dict[RuleKind, float]] = None,
        buy_sell_ratio: float = 1.2,
        hold_confidence: float = 0.4,
        boost_factor: float = 1.3,
        agreement_threshold: float = 0.6,
        name: str = "SignalAggregator"
    ):
        """
        Initialize aggregator.

        Args:
            evaluators: Rule evaluators, in reporting order
            weights: RuleKind -> weight (default: taken from the evaluators)
            buy_sell_ratio: How much heavier one side must be to win
            hold_confidence: Confidence reported when the sides disagree
            boost_factor: Confidence multiplier on strong agreement
            agreement_threshold: Agreement ratio above which the boost applies
            name: Aggregator name for logging
        """
        self.evaluators = list(evaluators)
        if weights is None:
            weights = dict(DEFAULT_RULE_WEIGHTS)
            weights.update({e.kind: e.weight for e in self.evaluators})
        self.weights = {RuleKind(k): float(v) for k, v in weights.items()}
        self.buy_sell_ratio = buy_sell_ratio
        self.hold_confidence = hold_confidence
        self.boost_factor = boost_factor
        self.agreement_threshold = agreement_threshold
        self.name = name
        self.logger = logging.getLogger(f"{__name__}.{name}")

    def weight_for(self, result: RuleResult) -> float:
        return self.weights.get(result.kind, UNKNOWN_RULE_WEIGHT)

    async def run_rules(self, snapshot: PriceSnapshot) -> List[RuleResult]:
        """Run every evaluator concurrently; results keep evaluator order."""
        results = await asyncio.gather(
            *(evaluator.evaluate(snapshot) for evaluator in self.evaluators)
        )
        return list(results)

    async def evaluate(self, snapshot: PriceSnapshot) -> MultiRuleResult:
        """
        Evaluate all rules for a snapshot and aggregate them.

        Args:
            snapshot: Market data for one ticker

        Returns:
            MultiRuleResult with the ordered rule results and overall verdict
        """
        rule_results = await self.run_rules(snapshot)
        result = self.aggregate(rule_results)
        self.logger.info(
            f"{snapshot.ticker}: {result.overall_signal.value} "
            f"(confidence={result.overall_confidence:.2f}, "
            f"{len(result.triggered_results)}/{len(result.rule_results)} rules triggered)"
        )
        return result

    def aggregate(self, rule_results: Iterable[RuleResult]) -> MultiRuleResult:
        """
        Aggregate rule results into an overall signal.

        Logic:
        1. No triggered rules -> HOLD with confidence 0
        2. Sum weights of triggered bullish and bearish rules
        3. Bullish outweighs bearish by buy_sell_ratio -> BUY
        4. Bearish outweighs bullish by buy_sell_ratio -> SELL
        5. Otherwise HOLD with hold_confidence
        6. Boost confidence when agreement > agreement_threshold
        7. Round to 2 decimals, clamp to [0, 1]
        """
        rule_results = tuple(rule_results)
        triggered = [r for r in rule_results if r.triggered]

        if not triggered:
            self.logger.debug("No rules triggered -> HOLD")
            return MultiRuleResult(
                rule_results=rule_results,
                overall_signal=Signal.HOLD,
                overall_confidence=0.0,
            )

        bullish_weight = sum(self.weight_for(r) for r in triggered if r.is_bullish)
        bearish_weight = sum(self.weight_for(r) for r in triggered if not r.is_bullish)
        total_weight = bullish_weight + bearish_weight

        if bullish_weight > bearish_weight * self.buy_sell_ratio:
            signal = Signal.BUY
            confidence = bullish_weight / total_weight
        elif bearish_weight > bullish_weight * self.buy_sell_ratio:
            signal = Signal.SELL
            confidence = bearish_weight / total_weight
        else:
            signal = Signal.HOLD
            confidence = self.hold_confidence

        agreement_ratio = max(bullish_weight, bearish_weight) / total_weight if total_weight > 0 else 0.0
        if agreement_ratio > self.agreement_threshold:
            confidence = min(confidence * self.boost_factor, 1.0)

        confidence = min(max(round(confidence, 2), 0.0), 1.0)

        self.logger.debug(
            f"Weighted vote: bullish={bullish_weight:.1f} bearish={bearish_weight:.1f} "
            f"agreement={agreement_ratio:.2f} -> {signal.value} ({confidence:.2f})"
        )

        return MultiRuleResult(
            rule_results=rule_results,
            overall_signal=signal,
            overall_confidence=confidence,
        )

    def get_stats(self) -> dict:
        return {
            'name': self.name,
            'rules': [
                {'name': e.name, 'kind': e.kind.value, 'weight': self.weights.get(e.kind, UNKNOWN_RULE_WEIGHT)}
                for e in self.evaluators
            ],
            'buy_sell_ratio': self.buy_sell_ratio,
            'hold_confidence': self.hold_confidence,
            'boost_factor': self.boost_factor,
            'agreement_threshold': self.agreement_threshold,
        }
