"""Shared utilities."""

from .logger import JSONFormatter, TradingLogger, get_trading_logger, setup_logging

__all__ = ['JSONFormatter', 'TradingLogger', 'get_trading_logger', 'setup_logging']
