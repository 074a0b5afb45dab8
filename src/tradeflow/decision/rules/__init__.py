"""
Rule evaluators for the decision engine.

Each rule is a pure evaluator over a PriceSnapshot that votes bullish or
bearish and reports whether it crossed its activation threshold.
"""

from tradeflow.decision.rules.base import RuleEvaluator
from tradeflow.decision.rules.price_rule import PriceRule
from tradeflow.decision.rules.volume_rule import VolumeRule, DEFAULT_AVERAGE_VOLUMES
from tradeflow.decision.rules.momentum_rule import MomentumRule
from tradeflow.decision.rules.trend_rule import TrendRule

__all__ = [
    'RuleEvaluator',
    'PriceRule',
    'VolumeRule',
    'MomentumRule',
    'TrendRule',
    'DEFAULT_AVERAGE_VOLUMES',
]
