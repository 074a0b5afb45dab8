"""
Decision Engine - Rule evaluation, signal aggregation and trade state.

This module implements the decision-making layer that:
1. Evaluates four independent rules on a price snapshot
2. Aggregates them into a weighted BUY/SELL/HOLD signal
3. Advances a WAIT -> ARMED -> ENTER state machine per session
4. Produces an immutable TradeDecision record

Components:
- DecisionEngine: Main orchestrator
- RuleEvaluator: Base for rule evaluators
- SignalAggregator: Weighted vote over rule results
- TradeStateMachine / SessionStateStore: Session state
- create_trade_decision: Decision record factory
"""

from tradeflow.decision.models import (
    PriceSnapshot,
    RuleKind,
    RuleResult,
    MultiRuleResult,
    Signal,
    TradeDecision,
)
from tradeflow.decision.rules import (
    RuleEvaluator,
    PriceRule,
    VolumeRule,
    MomentumRule,
    TrendRule,
)
from tradeflow.decision.aggregator import SignalAggregator, DEFAULT_RULE_WEIGHTS
from tradeflow.decision.state_machine import (
    TradeState,
    TradeAction,
    StateTransition,
    SessionStateStore,
    TradeStateMachine,
    determine_next_state,
)
from tradeflow.decision.factory import create_trade_decision
from tradeflow.decision.engine import DecisionEngine, DecisionOutcome, create_default_decision_engine

__all__ = [
    # Core engine
    'DecisionEngine',
    'DecisionOutcome',
    'create_default_decision_engine',

    # Data structures
    'PriceSnapshot',
    'RuleKind',
    'RuleResult',
    'MultiRuleResult',
    'Signal',
    'TradeDecision',

    # Rules
    'RuleEvaluator',
    'PriceRule',
    'VolumeRule',
    'MomentumRule',
    'TrendRule',

    # Aggregation
    'SignalAggregator',
    'DEFAULT_RULE_WEIGHTS',

    # State machine
    'TradeState',
    'TradeAction',
    'StateTransition',
    'SessionStateStore',
    'TradeStateMachine',
    'determine_next_state',

    # Decision records
    'create_trade_decision',
]
