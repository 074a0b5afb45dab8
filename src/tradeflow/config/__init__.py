"""
Configuration management module.

Loads configuration from YAML files and provides easy access.
"""

from .loader import ConfigLoader, load_app_config
from .settings import (
    AppConfig,
    SystemConfig,
    MarketDataConfig,
    DecisionConfig,
    StorageConfig,
    TradingConfig,
)

__all__ = [
    'ConfigLoader',
    'load_app_config',
    'AppConfig',
    'SystemConfig',
    'MarketDataConfig',
    'DecisionConfig',
    'StorageConfig',
    'TradingConfig',
]
