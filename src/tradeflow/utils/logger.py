"""
Logging Utilities

Provides structured logging with:
- JSON formatting for machine-readable output
- Cycle timing
- Correlation ids per run
- Trading-specific helpers (signals, transitions, decisions)
"""

import logging
import json
import sys
import time
from datetime import datetime
from typing import Optional
from pathlib import Path
from contextlib import contextmanager


# Extra attributes copied into JSON log lines when present on a record
_EXTRA_FIELDS = (
    'correlation_id',
    'ticker',
    'signal',
    'confidence',
    'previous_state',
    'next_state',
    'action',
    'triggered_rules',
    'execution_time',
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class TradingLogger:
    """Specialized logger for decision-cycle events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def trade_signal(self, ticker: str, signal: str, confidence: float, **context):
        """Log aggregated signal."""
        extra = {
            'ticker': ticker,
            'signal': signal,
            'confidence': confidence,
            **context
        }
        self.logger.info(f"Signal: {signal} for {ticker} (confidence={confidence})", extra=extra)

    def state_transition(self, ticker: str, previous_state: str, next_state: str, action: str, **context):
        """Log state machine transition."""
        extra = {
            'ticker': ticker,
            'previous_state': previous_state,
            'next_state': next_state,
            'action': action,
            **context
        }
        self.logger.info(f"Transition {ticker}: {previous_state} -> {next_state} ({action})", extra=extra)

    def decision_recorded(self, ticker: str, action: str, confidence: float, triggered_rules, **context):
        """Log persisted decision."""
        extra = {
            'ticker': ticker,
            'action': action,
            'confidence': confidence,
            'triggered_rules': list(triggered_rules),
            **context
        }
        self.logger.info(f"Decision recorded: {ticker} {action} (confidence={confidence})", extra=extra)

    @contextmanager
    def timer(self, operation: str, **context):
        """Context manager for timing operations."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            execution_time = time.perf_counter() - start_time
            extra = {'execution_time': execution_time, **context}
            self.logger.debug(f"Operation completed: {operation} in {execution_time:.3f}s", extra=extra)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    correlation_id: Optional[str] = None
) -> logging.Logger:
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON formatting
        correlation_id: Optional correlation ID attached to every record

    Returns:
        Configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if correlation_id:
        filter_ = _CorrelationFilter(correlation_id)
        for handler in logger.handlers:
            handler.addFilter(filter_)

    return logger


class _CorrelationFilter(logging.Filter):
    def __init__(self, correlation_id: str):
        super().__init__()
        self.correlation_id = correlation_id

    def filter(self, record):
        record.correlation_id = self.correlation_id
        return True


def get_trading_logger(name: str) -> TradingLogger:
    """Get a trading-specific logger instance."""
    return TradingLogger(name)
