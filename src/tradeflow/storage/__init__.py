"""
Decision storage.

Append-only CSV persistence for TradeDecision records.
"""

from .csv_sink import (
    CsvDecisionSink,
    CsvOutputResult,
    append_decision_to_csv,
    batch_append_decisions_to_csv,
    read_decisions_from_csv,
    format_decision_row,
    CSV_COLUMNS,
    CSV_HEADER,
)

__all__ = [
    'CsvDecisionSink',
    'CsvOutputResult',
    'append_decision_to_csv',
    'batch_append_decisions_to_csv',
    'read_decisions_from_csv',
    'format_decision_row',
    'CSV_COLUMNS',
    'CSV_HEADER',
]
