"""
tradeflow - rule-driven WAIT -> ARMED -> ENTER trading decisions.

Evaluates four market rules per ticker, aggregates them into a weighted
BUY/SELL/HOLD signal, advances a per-session state machine and appends
every decision to a CSV file.
"""

__version__ = "0.1.0"
