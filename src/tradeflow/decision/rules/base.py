"""
Base class for rule evaluators.

Rule evaluators are pure functions of a PriceSnapshot. They never share
state, so the aggregator may run them concurrently.
"""

from abc import ABC, abstractmethod
from typing import Optional
import logging

from tradeflow.decision.models import PriceSnapshot, RuleKind, RuleResult

logger = logging.getLogger(__name__)


class RuleEvaluator(ABC):
    """
    Base class for rule evaluators.

    Each evaluator has a kind (used as the weight-table key) and a weight
    (importance in the weighted vote). evaluate() is async only so that the
    aggregator can join evaluators with asyncio.gather; implementations must
    not perform I/O.
    """

    kind: RuleKind

    def __init__(self, weight: float, name: Optional[str] = None):
        self.weight = weight
        self.name = name or self.__class__.__name__
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @abstractmethod
    async def evaluate(self, snapshot: PriceSnapshot) -> RuleResult:
        """
        Evaluate the snapshot.

        Args:
            snapshot: Market data for one ticker

        Returns:
            RuleResult stamped with this evaluator's kind
        """
        pass

    def log_result(self, result: RuleResult) -> None:
        """Log rule outcome."""
        if result.triggered:
            direction = "bullish" if result.is_bullish else "bearish"
            self.logger.debug(
                f"{self.name}: {result.rule} -> {direction} "
                f"(confidence={result.confidence:.2f}, weight={self.weight:.1f})"
            )
        else:
            self.logger.debug(f"{self.name}: {result.rule} -> not triggered")
