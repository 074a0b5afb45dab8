"""
Workflows - decision cycles over one ticker or a ticker universe.
"""

from .trade_workflow import TradeWorkflow, TradeWorkflowOutput
from .universe_workflow import UniverseWorkflow, UniverseWorkflowOutput, TickerFailure

__all__ = [
    'TradeWorkflow',
    'TradeWorkflowOutput',
    'UniverseWorkflow',
    'UniverseWorkflowOutput',
    'TickerFailure',
]
