"""
Decision data models.

Immutable data carriers passed between the rule evaluators, the signal
aggregator, the state machine and the decision sink:
- PriceSnapshot: one market-data observation for a ticker
- RuleResult: output of a single rule evaluator
- MultiRuleResult: aggregated verdict over all rules
- TradeDecision: persisted decision record
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Tuple, Dict, Any


class RuleKind(str, Enum):
    """Identifies which evaluator produced a RuleResult (weight-table key)."""
    PRICE = "price"
    VOLUME = "volume"
    MOMENTUM = "momentum"
    TREND = "trend"


class Signal(str, Enum):
    """Overall trading signal."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class PriceSnapshot:
    """
    Market data for one ticker at one instant.

    Optional fields are None when the source did not provide them.
    Zero is a real value and is never treated as missing.
    """
    ticker: str
    price: float
    moving_average: float
    volume: Optional[float] = None
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    previous_close: Optional[float] = None
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class RuleResult:
    """
    Result from a single rule evaluator.

    Attributes:
        is_bullish: Direction the rule points to
        triggered: Whether the rule crossed its activation threshold
        rule: Human-readable description of what the rule saw
        confidence: Rule-local confidence (0-100)
        kind: Evaluator that produced the result
    """
    is_bullish: bool
    triggered: bool
    rule: str
    confidence: float
    kind: RuleKind

    def __repr__(self) -> str:
        direction = "bullish" if self.is_bullish else "bearish"
        status = "triggered" if self.triggered else "idle"
        return f"RuleResult({self.kind.value}: {self.rule!r}, {direction}, {status}, conf={self.confidence})"


@dataclass(frozen=True)
class MultiRuleResult:
    """
    Aggregated verdict over all rules.

    rule_results keeps evaluation order: price, volume, momentum, trend.
    """
    rule_results: Tuple[RuleResult, ...]
    overall_signal: Signal
    overall_confidence: float

    @property
    def triggered_results(self) -> Tuple[RuleResult, ...]:
        return tuple(r for r in self.rule_results if r.triggered)

    @property
    def primary(self) -> Optional[RuleResult]:
        """First rule result (the price rule in the default engine)."""
        return self.rule_results[0] if self.rule_results else None


@dataclass(frozen=True)
class TradeDecision:
    """
    Persisted decision record. Never mutated once created.

    `state` is the state *before* this evaluation's transition.
    """
    ticker: str
    state: str
    action: str
    confidence: float
    triggered_rules: Tuple[str, ...] = field(default_factory=tuple)
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['triggered_rules'] = list(self.triggered_rules)
        return data
