"""Decision record construction."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from tradeflow.decision.models import RuleResult, TradeDecision

DEFAULT_CONFIDENCE = 0.5


def create_trade_decision(
    ticker: str,
    current_state: Union[str, Enum],
    action: Union[str, Enum],
    rule_result: Optional[RuleResult] = None,
    confidence: Optional[float] = None,
) -> TradeDecision:
    """
    Build an immutable TradeDecision stamped with the current UTC time.

    Args:
        ticker: Ticker symbol
        current_state: State before the transition
        action: Transition action label
        rule_result: Primary rule result; recorded only if it triggered
        confidence: Overall confidence (default: 0.5 when None)

    Returns:
        TradeDecision
    """
    state = getattr(current_state, 'value', current_state)
    action_label = getattr(action, 'value', action)

    triggered_rules = ()
    if rule_result is not None and rule_result.triggered:
        triggered_rules = (rule_result.rule,)

    return TradeDecision(
        ticker=ticker,
        state=str(state),
        action=str(action_label),
        confidence=DEFAULT_CONFIDENCE if confidence is None else float(confidence),
        triggered_rules=triggered_rules,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
