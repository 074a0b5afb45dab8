"""
Configuration models using Pydantic for type-safe validation.

This module defines all configuration models for tradeflow:
- SystemConfig: Environment, log level, data directory
- MarketDataConfig: Quote API and simulated fallback settings
- DecisionConfig: Rule weights and aggregation thresholds
- StorageConfig: CSV decision sink
- TradingConfig: Tickers and cycle interval
"""

from typing import Dict, List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
from pathlib import Path

from tradeflow.decision.models import RuleKind
from tradeflow.decision.rules.volume_rule import DEFAULT_AVERAGE_VOLUMES, FALLBACK_AVERAGE_VOLUME


# ============================================================================
# Enums for Configuration
# ============================================================================

class Environment(str, Enum):
    """Deployment environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ============================================================================
# System Configuration
# ============================================================================

class SystemConfig(BaseModel):
    """System-wide settings."""

    model_config = ConfigDict(use_enum_values=True)

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment"
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level"
    )

    data_dir: Path = Field(
        default=Path("."),
        description="Directory for decision output files"
    )

    json_logs: bool = Field(
        default=False,
        description="Emit logs as JSON lines"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


# ============================================================================
# Market Data Configuration
# ============================================================================

class MarketDataConfig(BaseModel):
    """Quote API settings."""

    use_live_api: bool = Field(
        default=True,
        description="Query the quote API; when False every snapshot is simulated"
    )

    base_url: str = Field(
        default="https://query1.finance.yahoo.com",
        description="Quote API base URL"
    )

    timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Total request timeout"
    )

    moving_average_window: int = Field(
        default=50,
        ge=1,
        le=200,
        description="Days in the moving average"
    )


# ============================================================================
# Decision Engine Configuration
# ============================================================================

class DecisionConfig(BaseModel):
    """Decision engine configuration."""

    price_weight: float = Field(default=1.5, gt=0.0, description="Price vs 50-DMA rule weight")
    volume_weight: float = Field(default=1.2, gt=0.0, description="Volume anomaly rule weight")
    momentum_weight: float = Field(default=1.3, gt=0.0, description="Momentum rule weight")
    trend_weight: float = Field(default=1.4, gt=0.0, description="Intraday trend rule weight")

    buy_sell_ratio: float = Field(
        default=1.2,
        ge=1.0,
        description="How much heavier one side must be to produce BUY or SELL"
    )

    hold_confidence: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Confidence reported for conflicting signals"
    )

    boost_factor: float = Field(
        default=1.3,
        ge=1.0,
        description="Confidence multiplier when rules agree"
    )

    agreement_threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Agreement ratio above which the boost applies"
    )

    average_volumes: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_AVERAGE_VOLUMES),
        description="Expected average daily volume per ticker"
    )

    default_average_volume: float = Field(
        default=FALLBACK_AVERAGE_VOLUME,
        gt=0.0,
        description="Expected volume for tickers missing from average_volumes"
    )

    @field_validator('average_volumes')
    @classmethod
    def volumes_positive(cls, v):
        """Validate that every expected volume is positive."""
        bad = [ticker for ticker, volume in v.items() if volume <= 0]
        if bad:
            raise ValueError(f"average_volumes must be positive: {bad}")
        return {ticker.upper(): volume for ticker, volume in v.items()}

    def rule_weights(self) -> Dict[RuleKind, float]:
        return {
            RuleKind.PRICE: self.price_weight,
            RuleKind.VOLUME: self.volume_weight,
            RuleKind.MOMENTUM: self.momentum_weight,
            RuleKind.TREND: self.trend_weight,
        }


# ============================================================================
# Storage Configuration
# ============================================================================

class StorageConfig(BaseModel):
    """Decision sink configuration."""

    csv_filename: str = Field(
        default="trade-decisions.csv",
        description="CSV file (relative to system.data_dir) receiving decisions"
    )


# ============================================================================
# Trading Configuration
# ============================================================================

class TradingConfig(BaseModel):
    """Trading configuration."""

    tickers: List[str] = Field(
        default=["AAPL"],
        description="Tickers evaluated each cycle"
    )

    cycle_interval_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Pause between evaluation cycles"
    )

    @field_validator('tickers')
    @classmethod
    def tickers_not_empty(cls, v):
        cleaned = [t.strip().upper() for t in v if t and t.strip()]
        if not cleaned:
            raise ValueError('at least one ticker is required')
        return cleaned


# ============================================================================
# Complete Application Configuration
# ============================================================================

class AppConfig(BaseModel):
    """Complete application configuration."""

    model_config = ConfigDict(use_enum_values=True)

    system: SystemConfig = Field(
        default_factory=SystemConfig,
        description="System configuration"
    )

    market_data: MarketDataConfig = Field(
        default_factory=MarketDataConfig,
        description="Market data configuration"
    )

    decision: DecisionConfig = Field(
        default_factory=DecisionConfig,
        description="Decision engine configuration"
    )

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Storage configuration"
    )

    trading: TradingConfig = Field(
        default_factory=TradingConfig,
        description="Trading configuration"
    )

    @property
    def csv_path(self) -> Path:
        return Path(self.system.data_dir) / self.storage.csv_filename
