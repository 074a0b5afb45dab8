"""
Unit tests for the SignalAggregator.

Tests:
- Weighted BUY / SELL / HOLD voting
- Agreement boost and 1.0 cap
- No-trigger case
- Configurable thresholds
- Concurrent rule evaluation keeps reporting order
"""

import asyncio

import pytest

from tradeflow.decision.aggregator import DEFAULT_RULE_WEIGHTS, SignalAggregator
from tradeflow.decision.models import PriceSnapshot, RuleKind, RuleResult, Signal
from tradeflow.decision.rules import MomentumRule, PriceRule, RuleEvaluator, TrendRule, VolumeRule


# ============================================================================
# Helpers
# ============================================================================

def rule(kind: RuleKind, bullish: bool, triggered: bool = True) -> RuleResult:
    return RuleResult(
        is_bullish=bullish,
        triggered=triggered,
        rule=f"{kind.value} rule",
        confidence=50.0,
        kind=kind,
    )


@pytest.fixture
def aggregator():
    return SignalAggregator(
        evaluators=[PriceRule(), VolumeRule(), MomentumRule(), TrendRule()]
    )


# ============================================================================
# Voting
# ============================================================================

def test_no_triggered_rules_is_hold_with_zero_confidence(aggregator):
    results = [rule(kind, True, triggered=False) for kind in RuleKind]

    verdict = aggregator.aggregate(results)

    assert verdict.overall_signal == Signal.HOLD
    assert verdict.overall_confidence == 0.0
    assert verdict.triggered_results == ()


def test_empty_results_is_hold(aggregator):
    verdict = aggregator.aggregate([])

    assert verdict.overall_signal == Signal.HOLD
    assert verdict.overall_confidence == 0.0
    assert verdict.primary is None


def test_all_bullish_is_buy_capped_at_one(aggregator):
    results = [rule(kind, True) for kind in RuleKind]

    verdict = aggregator.aggregate(results)

    assert verdict.overall_signal == Signal.BUY
    # 1.0 * 1.3 boost is capped
    assert verdict.overall_confidence == 1.0


def test_bearish_majority_is_sell(aggregator):
    # bearish: price 1.5 + trend 1.4 = 2.9, bullish: volume 1.2
    results = [
        rule(RuleKind.PRICE, False),
        rule(RuleKind.VOLUME, True),
        rule(RuleKind.MOMENTUM, True, triggered=False),
        rule(RuleKind.TREND, False),
    ]

    verdict = aggregator.aggregate(results)

    assert verdict.overall_signal == Signal.SELL
    # 2.9 / 4.1 = 0.707 > 0.6 -> boosted to 0.919 -> 0.92
    assert verdict.overall_confidence == 0.92


def test_balanced_votes_hold_with_fixed_confidence(aggregator):
    # bullish: price 1.5, bearish: trend 1.4 -> neither side wins by 1.2x
    results = [
        rule(RuleKind.PRICE, True),
        rule(RuleKind.VOLUME, True, triggered=False),
        rule(RuleKind.MOMENTUM, True, triggered=False),
        rule(RuleKind.TREND, False),
    ]

    verdict = aggregator.aggregate(results)

    assert verdict.overall_signal == Signal.HOLD
    # agreement 1.5/2.9 = 0.517, no boost
    assert verdict.overall_confidence == 0.4


def test_buy_without_boost():
    # bullish 1.5+1.3 = 2.8, bearish 1.2+1.4 = 2.6; a lower ratio lets the narrow lead win
    aggregator = SignalAggregator(evaluators=[], buy_sell_ratio=1.05)
    results = [
        rule(RuleKind.PRICE, True),
        rule(RuleKind.VOLUME, False),
        rule(RuleKind.MOMENTUM, True),
        rule(RuleKind.TREND, False),
    ]

    verdict = aggregator.aggregate(results)

    assert verdict.overall_signal == Signal.BUY
    # 2.8 / 5.4 = 0.5185, agreement below 0.6 -> no boost
    assert verdict.overall_confidence == 0.52


def test_one_sided_vote_is_buy_for_any_ratio():
    aggregator = SignalAggregator(evaluators=[], buy_sell_ratio=10.0)
    results = [rule(RuleKind.PRICE, True), rule(RuleKind.TREND, True)]

    verdict = aggregator.aggregate(results)

    assert verdict.overall_signal == Signal.BUY
    assert verdict.overall_confidence == 1.0


def test_configurable_hold_and_boost():
    aggregator = SignalAggregator(
        evaluators=[],
        hold_confidence=0.25,
        boost_factor=1.0,
        agreement_threshold=0.99,
    )
    results = [rule(RuleKind.PRICE, True), rule(RuleKind.TREND, False)]

    verdict = aggregator.aggregate(results)

    assert verdict.overall_signal == Signal.HOLD
    assert verdict.overall_confidence == 0.25


def test_weights_are_keyed_by_rule_kind(aggregator):
    assert aggregator.weights == DEFAULT_RULE_WEIGHTS
    assert aggregator.weight_for(rule(RuleKind.MOMENTUM, True)) == 1.3


def test_weights_follow_evaluators():
    aggregator = SignalAggregator(evaluators=[PriceRule(weight=3.0)])

    assert aggregator.weights[RuleKind.PRICE] == 3.0
    assert aggregator.weights[RuleKind.TREND] == 1.4


def test_aggregate_is_idempotent(aggregator):
    results = [
        rule(RuleKind.PRICE, True),
        rule(RuleKind.VOLUME, False),
        rule(RuleKind.MOMENTUM, True),
        rule(RuleKind.TREND, True, triggered=False),
    ]

    first = aggregator.aggregate(results)
    second = aggregator.aggregate(results)

    assert first.overall_signal == second.overall_signal
    assert first.overall_confidence == second.overall_confidence


@pytest.mark.parametrize(
    "flags",
    [
        (True, True, True, True),
        (False, False, False, False),
        (True, False, True, False),
        (True, True, False, False),
        (False, True, True, True),
    ],
)
def test_confidence_always_in_unit_interval(aggregator, flags):
    results = [rule(kind, bullish) for kind, bullish in zip(RuleKind, flags)]

    verdict = aggregator.aggregate(results)

    assert 0.0 <= verdict.overall_confidence <= 1.0


# ============================================================================
# Evaluation
# ============================================================================

@pytest.mark.asyncio
async def test_evaluate_keeps_rule_order(aggregator):
    snapshot = PriceSnapshot(
        ticker="AAPL",
        price=150.0,
        moving_average=140.0,
        volume=75_000_000,
        day_high=151.0,
        day_low=140.0,
        previous_close=145.0,
    )

    verdict = await aggregator.evaluate(snapshot)

    kinds = [r.kind for r in verdict.rule_results]
    assert kinds == [RuleKind.PRICE, RuleKind.VOLUME, RuleKind.MOMENTUM, RuleKind.TREND]
    # every rule triggered bullish
    assert verdict.overall_signal == Signal.BUY
    assert verdict.overall_confidence == 1.0
    assert verdict.primary.rule == "price > 50-DMA + gap up"


class SlowRule(RuleEvaluator):
    kind = RuleKind.PRICE

    def __init__(self, delay: float):
        super().__init__(weight=1.5)
        self.delay = delay

    async def evaluate(self, snapshot):
        await asyncio.sleep(self.delay)
        return RuleResult(True, True, "slow", 10.0, self.kind)


class FastRule(RuleEvaluator):
    kind = RuleKind.VOLUME

    def __init__(self):
        super().__init__(weight=1.2)

    async def evaluate(self, snapshot):
        return RuleResult(False, False, "fast", 0.0, self.kind)


@pytest.mark.asyncio
async def test_run_rules_order_independent_of_completion():
    aggregator = SignalAggregator(evaluators=[SlowRule(0.05), FastRule()])
    snapshot = PriceSnapshot(ticker="X", price=1.0, moving_average=1.0)

    results = await aggregator.run_rules(snapshot)

    assert [r.rule for r in results] == ["slow", "fast"]
