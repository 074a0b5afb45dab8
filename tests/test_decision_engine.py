"""
Tests for the Decision Engine.

Scenarios:
1. Strong bullish snapshot arms, then enters, then resets
2. Quiet snapshot holds with no triggered rules
3. Decision callbacks (including a failing one)
4. Rule failure propagates and leaves state untouched
5. Factory wiring from DecisionConfig
"""

import pytest

from tradeflow.config.settings import DecisionConfig
from tradeflow.decision import (
    DecisionEngine,
    PriceSnapshot,
    RuleKind,
    Signal,
    SignalAggregator,
    TradeState,
    create_default_decision_engine,
)
from tradeflow.decision.rules import PriceRule, RuleEvaluator


BULLISH = PriceSnapshot(
    ticker="AAPL",
    price=150.0,
    moving_average=140.0,
    volume=75_000_000,
    day_high=151.0,
    day_low=140.0,
    previous_close=145.0,
)

QUIET = PriceSnapshot(
    ticker="MSFT",
    price=100.0,
    moving_average=100.0,
    volume=25_000_000,
    previous_close=100.0,
)


@pytest.fixture
def engine():
    return create_default_decision_engine()


# ============================================================================
# Decision Cycle
# ============================================================================

@pytest.mark.asyncio
async def test_bullish_cycles_arm_enter_reset(engine):
    first = await engine.evaluate(BULLISH)
    second = await engine.evaluate(BULLISH)
    third = await engine.evaluate(BULLISH)

    assert first.multi_rule_result.overall_signal == Signal.BUY
    assert (first.decision.state, first.decision.action) == ("WAIT", "ARM_FOR_BUY")
    assert (second.decision.state, second.decision.action) == ("ARMED", "BUY")
    assert (third.decision.state, third.decision.action) == ("ENTER", "POSITION_ENTERED")
    assert engine.state_machine.current_state("AAPL") == TradeState.WAIT

    assert first.decision.confidence == 1.0
    assert first.decision.triggered_rules == ("price > 50-DMA + gap up",)


@pytest.mark.asyncio
async def test_quiet_snapshot_holds(engine):
    outcome = await engine.evaluate(QUIET)

    assert outcome.multi_rule_result.overall_signal == Signal.HOLD
    assert outcome.transition.next_state == TradeState.WAIT
    assert outcome.decision.action == "WAIT"
    assert outcome.decision.confidence == 0.0
    assert outcome.decision.triggered_rules == ()


@pytest.mark.asyncio
async def test_hold_after_arm_disarms(engine):
    await engine.evaluate(BULLISH, session_id="s1")
    outcome = await engine.evaluate(QUIET, session_id="s1")

    assert outcome.decision.state == "ARMED"
    assert outcome.decision.action == "DISARM"
    assert engine.state_machine.current_state("s1") == TradeState.WAIT


@pytest.mark.asyncio
async def test_sessions_default_to_ticker(engine):
    await engine.evaluate(BULLISH)
    await engine.evaluate(QUIET)

    assert engine.get_stats()["sessions"] == {"AAPL": "ARMED", "MSFT": "WAIT"}


# ============================================================================
# Callbacks
# ============================================================================

@pytest.mark.asyncio
async def test_decision_callbacks_receive_every_decision(engine):
    received = []

    async def broken(decision):
        raise RuntimeError("sink offline")

    async def record(decision):
        received.append(decision)

    engine.on_decision(broken)
    engine.on_decision(record)

    outcome = await engine.evaluate(BULLISH)

    assert received == [outcome.decision]
    assert engine.get_stats()["decision_callbacks_registered"] == 2


# ============================================================================
# Failures
# ============================================================================

class ExplodingRule(RuleEvaluator):
    kind = RuleKind.TREND

    async def evaluate(self, snapshot):
        raise ValueError("bad snapshot")


@pytest.mark.asyncio
async def test_rule_failure_propagates_without_transition():
    engine = DecisionEngine(SignalAggregator(evaluators=[PriceRule(), ExplodingRule(weight=1.4)]))

    with pytest.raises(ValueError):
        await engine.evaluate(BULLISH)

    assert engine.state_machine.store.sessions() == []


# ============================================================================
# Factory
# ============================================================================

def test_factory_uses_decision_config():
    config = DecisionConfig(
        price_weight=3.0,
        buy_sell_ratio=2.0,
        hold_confidence=0.3,
        average_volumes={"aapl": 10_000_000},
    )

    engine = create_default_decision_engine(config)

    assert engine.aggregator.weights[RuleKind.PRICE] == 3.0
    assert engine.aggregator.buy_sell_ratio == 2.0
    assert engine.aggregator.hold_confidence == 0.3
    assert [e.kind for e in engine.aggregator.evaluators] == list(RuleKind)

    volume_rule = engine.aggregator.evaluators[1]
    assert volume_rule.average_volume_for("AAPL") == 10_000_000


@pytest.mark.asyncio
async def test_decision_confidence_is_the_aggregated_confidence(engine):
    outcome = await engine.evaluate(QUIET)

    assert outcome.decision.confidence == outcome.multi_rule_result.overall_confidence
    assert "default_confidence" not in DecisionConfig.model_fields
    assert "default_confidence" not in engine.get_stats()


@pytest.mark.asyncio
async def test_corrupted_session_state_is_recorded_on_reset(engine):
    engine.state_machine.store.set("AAPL", "BOGUS")

    outcome = await engine.evaluate(BULLISH)

    assert outcome.decision.state == "BOGUS"
    assert outcome.decision.action == "RESET_TO_WAIT"
    assert engine.state_machine.current_state("AAPL") == TradeState.WAIT
