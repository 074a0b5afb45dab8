"""
Decision Engine - Core decision cycle orchestrator.

One evaluation cycle:
1. Run all rule evaluators concurrently on the snapshot
2. Aggregate rule results into BUY/SELL/HOLD + confidence
3. Advance the session's state machine with the overall signal
4. Build the TradeDecision record
5. Notify registered decision callbacks

Design Pattern: Composition
- Aggregator owns the rule evaluators
- State machine owns session state
- Callbacks receive every decision (e.g. the CSV sink)
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, TYPE_CHECKING
import logging

from tradeflow.decision.aggregator import SignalAggregator
from tradeflow.decision.factory import create_trade_decision
from tradeflow.decision.models import MultiRuleResult, PriceSnapshot, TradeDecision
from tradeflow.decision.state_machine import StateTransition, TradeStateMachine

if TYPE_CHECKING:
    from tradeflow.config.settings import DecisionConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionOutcome:
    """Everything one decision cycle produced."""
    multi_rule_result: MultiRuleResult
    transition: StateTransition
    decision: TradeDecision


class DecisionEngine:
    """
    Main decision engine.

    Workflow:
    1. Receive a PriceSnapshot
    2. Aggregator runs rules and produces the overall signal
    3. State machine transitions the session (ticker by default)
    4. Decision factory stamps the record
    5. Decision callbacks are invoked
    """

    def __init__(
        self,
        aggregator: SignalAggregator,
        state_machine: Optional[TradeStateMachine] = None,
        name: str = "DecisionEngine"
    ):
        """
        Initialize decision engine.

        Args:
            aggregator: Signal aggregator with its rule evaluators
            state_machine: Session state machine (default: fresh in-memory store)
            name: Engine name for logging
        """
        self.aggregator = aggregator
        self.state_machine = state_machine or TradeStateMachine()
        self.name = name

        self._decision_callbacks: List[Callable] = []

        self.logger = logging.getLogger(f"{__name__}.{name}")
        self.logger.info(
            f"DecisionEngine initialized: "
            f"{len(aggregator.evaluators)} rules, "
            f"buy/sell ratio={aggregator.buy_sell_ratio:.2f}"
        )

    async def evaluate(self, snapshot: PriceSnapshot, session_id: Optional[str] = None) -> DecisionOutcome:
        """
        Run one decision cycle for a snapshot.

        Args:
            snapshot: Market data for one ticker
            session_id: State machine session (default: the ticker)

        Returns:
            DecisionOutcome with the rule verdict, transition and decision
        """
        session_id = session_id or snapshot.ticker

        try:
            multi_rule_result = await self.aggregator.evaluate(snapshot)
        except Exception as e:
            self.logger.error(f"Rule evaluation failed for {snapshot.ticker}: {e}")
            raise

        transition = await self.state_machine.advance(session_id, multi_rule_result.overall_signal)

        decision = create_trade_decision(
            ticker=snapshot.ticker,
            current_state=transition.recorded_state,
            action=transition.action,
            rule_result=multi_rule_result.primary,
            confidence=multi_rule_result.overall_confidence,
        )

        self.logger.info(
            f"Decision {decision.ticker}: {decision.state} -> {decision.action} | "
            f"signal={multi_rule_result.overall_signal.value} confidence={decision.confidence:.2f}"
        )

        await self._emit_decision(decision)

        return DecisionOutcome(
            multi_rule_result=multi_rule_result,
            transition=transition,
            decision=decision,
        )

    def on_decision(self, callback: Callable) -> None:
        """
        Register callback for decisions.

        Args:
            callback: Async function called with every TradeDecision
                     Signature: async def callback(decision: TradeDecision) -> None
        """
        self._decision_callbacks.append(callback)
        self.logger.info(f"Registered decision callback: {getattr(callback, '__name__', repr(callback))}")

    async def _emit_decision(self, decision: TradeDecision) -> None:
        for callback in self._decision_callbacks:
            try:
                await callback(decision)
            except Exception as e:
                self.logger.error(
                    f"Error in decision callback {getattr(callback, '__name__', repr(callback))}: {e}"
                )

    def get_stats(self) -> dict:
        """
        Get decision engine statistics.

        Returns:
            Dict with engine configuration and session states
        """
        return {
            'name': self.name,
            'aggregator': self.aggregator.get_stats(),
            'sessions': self.state_machine.store.snapshot(),
            'decision_callbacks_registered': len(self._decision_callbacks),
        }


def create_default_decision_engine(
    config: Optional["DecisionConfig"] = None,
    state_machine: Optional[TradeStateMachine] = None
) -> DecisionEngine:
    """
    Factory function to create the decision engine with the four standard rules.

    - PriceRule (1.5), VolumeRule (1.2), MomentumRule (1.3), TrendRule (1.4)

    Args:
        config: Decision configuration (default: DecisionConfig defaults)
        state_machine: Optional shared state machine

    Returns:
        Configured DecisionEngine instance
    """
    from tradeflow.config.settings import DecisionConfig
    from tradeflow.decision.models import RuleKind
    from tradeflow.decision.rules import MomentumRule, PriceRule, TrendRule, VolumeRule

    config = config or DecisionConfig()
    weights = config.rule_weights()

    evaluators = [
        PriceRule(weight=weights[RuleKind.PRICE]),
        VolumeRule(
            weight=weights[RuleKind.VOLUME],
            average_volumes=config.average_volumes,
            default_average_volume=config.default_average_volume,
        ),
        MomentumRule(weight=weights[RuleKind.MOMENTUM]),
        TrendRule(weight=weights[RuleKind.TREND]),
    ]

    aggregator = SignalAggregator(
        evaluators=evaluators,
        weights=weights,
        buy_sell_ratio=config.buy_sell_ratio,
        hold_confidence=config.hold_confidence,
        boost_factor=config.boost_factor,
        agreement_threshold=config.agreement_threshold,
    )

    return DecisionEngine(
        aggregator=aggregator,
        state_machine=state_machine,
    )
