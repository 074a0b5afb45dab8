"""
Universe workflow - one decision cycle across many tickers.

Tickers are independent sessions and run concurrently. Results keep the
input order. A ticker that fails is reported without affecting the rest.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Sequence, Union
import logging

from tradeflow.workflows.trade_workflow import TradeWorkflow, TradeWorkflowOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickerFailure:
    ticker: str
    error: str


@dataclass
class UniverseWorkflowOutput:
    results: List[Union[TradeWorkflowOutput, TickerFailure]] = field(default_factory=list)

    @property
    def succeeded(self) -> List[TradeWorkflowOutput]:
        return [r for r in self.results if isinstance(r, TradeWorkflowOutput)]

    @property
    def failed(self) -> List[TickerFailure]:
        return [r for r in self.results if isinstance(r, TickerFailure)]


class UniverseWorkflow:
    """Fans one cycle out over a list of tickers."""

    def __init__(self, trade_workflow: TradeWorkflow):
        self.trade_workflow = trade_workflow
        self.logger = logging.getLogger(f"{__name__}.UniverseWorkflow")

    async def run(self, tickers: Sequence[str]) -> UniverseWorkflowOutput:
        """
        Run one cycle for every ticker.

        Args:
            tickers: Tickers to evaluate (duplicates allowed)

        Returns:
            UniverseWorkflowOutput with one entry per ticker, in input order
        """
        if not tickers:
            return UniverseWorkflowOutput()

        outcomes = await asyncio.gather(
            *(self.trade_workflow.run(ticker) for ticker in tickers),
            return_exceptions=True,
        )

        results: List[Union[TradeWorkflowOutput, TickerFailure]] = []
        for ticker, outcome in zip(tickers, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                self.logger.error(f"Trade workflow failed for {ticker}: {outcome}")
                results.append(TickerFailure(ticker=ticker, error=str(outcome)))
            else:
                results.append(outcome)

        output = UniverseWorkflowOutput(results=results)
        self.logger.info(
            f"Universe cycle complete: {len(output.succeeded)} ok, {len(output.failed)} failed"
        )
        return output
