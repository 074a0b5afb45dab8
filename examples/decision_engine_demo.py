"""
Decision Engine Demo

Demonstrates how to:
1. Create the default decision engine
2. Build a custom engine with different weights
3. Handle decisions through a callback and persist them to CSV
4. Walk one ticker through WAIT -> ARMED -> ENTER
"""

import asyncio
import random
import tempfile
from pathlib import Path

from tradeflow.config.settings import DecisionConfig, MarketDataConfig
from tradeflow.decision import (
    DecisionEngine,
    MomentumRule,
    PriceRule,
    PriceSnapshot,
    SignalAggregator,
    TradeDecision,
    TrendRule,
    VolumeRule,
    create_default_decision_engine,
)
from tradeflow.market_data import MarketDataProvider
from tradeflow.storage import CsvDecisionSink


def banner(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


async def demo_default_engine():
    """Demo 1: Default engine configuration."""
    banner("DEMO 1: Default Decision Engine")

    engine = create_default_decision_engine()
    stats = engine.get_stats()['aggregator']

    print("\nRules:")
    for rule in stats['rules']:
        print(f"  - {rule['name']} ({rule['kind']}, weight: {rule['weight']})")
    print(f"\nBUY/SELL ratio: {stats['buy_sell_ratio']}")
    print(f"HOLD confidence: {stats['hold_confidence']}")
    print(f"Agreement boost: x{stats['boost_factor']} above {stats['agreement_threshold']:.0%}")


async def demo_custom_engine():
    """Demo 2: Custom weights and a stricter vote."""
    banner("DEMO 2: Custom Decision Engine")

    aggregator = SignalAggregator(
        evaluators=[
            PriceRule(weight=2.0),  # Trend-following bias
            VolumeRule(weight=1.0),
            MomentumRule(weight=1.0, trigger_pct=0.01),
            TrendRule(weight=1.0),
        ],
        buy_sell_ratio=1.5,
    )
    engine = DecisionEngine(aggregator, name="StrictEngine")

    snapshot = PriceSnapshot(
        ticker="MSFT",
        price=360.0,
        moving_average=350.0,
        volume=20_000_000,
        day_high=362.0,
        day_low=352.0,
        previous_close=357.0,
    )
    outcome = await engine.evaluate(snapshot)

    print(f"\n{engine.name}: {snapshot.ticker} @ {snapshot.price}")
    for result in outcome.multi_rule_result.rule_results:
        print(f"  {result}")
    print(f"  => {outcome.multi_rule_result.overall_signal.value} "
          f"(confidence {outcome.multi_rule_result.overall_confidence:.2f})")


async def demo_decision_flow(output_dir: Path):
    """Demo 3: Three cycles for one ticker, persisted to CSV."""
    banner("DEMO 3: Decision Flow")

    engine = create_default_decision_engine(DecisionConfig(buy_sell_ratio=1.1))
    sink = CsvDecisionSink(output_dir / "demo-decisions.csv")

    async def on_decision(decision: TradeDecision):
        print(f"  {decision.ticker}: {decision.state:<5} -> {decision.action:<16} "
              f"confidence={decision.confidence:.2f} rules={list(decision.triggered_rules)}")

    engine.on_decision(on_decision)
    engine.on_decision(sink.write)

    provider = MarketDataProvider(MarketDataConfig(use_live_api=False), rng=random.Random(11))
    async with provider:
        for _ in range(3):
            snapshot = await provider.get_snapshot("AAPL")
            await engine.evaluate(snapshot)

    print(f"\n{sink.records_written} rows written to {sink.path}")
    print(sink.path.read_text(encoding="utf-8"))


async def main():
    print("\n" + "=" * 80)
    print("TRADEFLOW DECISION ENGINE - DEMO")
    print("=" * 80)

    await demo_default_engine()
    await demo_custom_engine()
    with tempfile.TemporaryDirectory() as tmp:
        await demo_decision_flow(Path(tmp))

    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())
