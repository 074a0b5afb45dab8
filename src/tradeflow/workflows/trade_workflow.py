"""
Trade workflow - one decision cycle for one ticker.

fetch snapshot -> rules -> aggregate -> state transition -> decision -> CSV
"""

from dataclasses import dataclass
from typing import Optional
import logging

from tradeflow.decision.engine import DecisionEngine
from tradeflow.decision.models import RuleResult, Signal, TradeDecision
from tradeflow.decision.state_machine import TradeState
from tradeflow.market_data.provider import MarketDataProvider
from tradeflow.storage.csv_sink import CsvDecisionSink
from tradeflow.utils.logger import get_trading_logger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeWorkflowOutput:
    """
    Result of one cycle.

    Attributes:
        ticker: Ticker evaluated
        action: Transition action label
        current_state: State after the transition
        previous_state: State before the transition
        signal: Overall aggregated signal
        rule_result: Primary (price) rule result
        decision: Decision record handed to the sink
        persisted: Whether the sink accepted the decision
    """
    ticker: str
    action: str
    current_state: TradeState
    previous_state: TradeState
    signal: Signal
    rule_result: Optional[RuleResult]
    decision: TradeDecision
    persisted: bool


class TradeWorkflow:
    """Runs one full decision cycle per call."""

    def __init__(
        self,
        provider: MarketDataProvider,
        engine: DecisionEngine,
        sink: Optional[CsvDecisionSink] = None,
    ):
        self.provider = provider
        self.engine = engine
        self.sink = sink
        self.trading_logger = get_trading_logger(f"{__name__}.TradeWorkflow")

    async def run(self, ticker: str) -> TradeWorkflowOutput:
        """
        Run one cycle for a ticker.

        Args:
            ticker: Ticker symbol (also the state machine session)

        Returns:
            TradeWorkflowOutput
        """
        with self.trading_logger.timer("trade_workflow", ticker=ticker):
            snapshot = await self.provider.get_snapshot(ticker)
            outcome = await self.engine.evaluate(snapshot)

            multi = outcome.multi_rule_result
            transition = outcome.transition
            decision = outcome.decision

            self.trading_logger.trade_signal(
                snapshot.ticker, multi.overall_signal.value, multi.overall_confidence
            )
            self.trading_logger.state_transition(
                snapshot.ticker,
                transition.recorded_state,
                transition.next_state.value,
                transition.action.value,
            )

            persisted = False
            if self.sink is not None:
                result = await self.sink.write(decision)
                persisted = result.success
                if persisted:
                    self.trading_logger.decision_recorded(
                        decision.ticker, decision.action, decision.confidence, decision.triggered_rules
                    )

        return TradeWorkflowOutput(
            ticker=snapshot.ticker,
            action=transition.action.value,
            current_state=transition.next_state,
            previous_state=transition.previous_state,
            signal=multi.overall_signal,
            rule_result=multi.primary,
            decision=decision,
            persisted=persisted,
        )
