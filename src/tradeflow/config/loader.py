"""
Configuration loader with YAML + environment variable support.

Loads and validates configuration files from the config/ directory.
Supports:
- Loading from YAML files
- ${VAR} / ${VAR:default} placeholders
- Environment variable overrides (.env is loaded first)
- Pydantic validation
- Caching
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv
from pydantic import ValidationError
import logging

from tradeflow.config.settings import AppConfig
from tradeflow.errors import ConfigurationError


logger = logging.getLogger(__name__)

# Repository root (src/tradeflow/config -> repo)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent

_TRUE_VALUES = {"1", "true", "yes", "on"}


# ============================================================================
# ConfigLoader - Main Configuration Loader
# ============================================================================

class ConfigLoader:
    """
    Configuration loader with YAML + environment variable support.

    Features:
    - Loads config.yaml from the config directory
    - Overrides with environment variables
    - Validates using Pydantic models
    - Caches loaded configuration
    """

    def __init__(self, config_dir: Optional[Path] = None, env_file: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            config_dir: Configuration directory (defaults to PROJECT_ROOT/config)
            env_file: .env file to load (defaults to PROJECT_ROOT/.env)
        """
        self.config_dir = Path(config_dir) if config_dir else (PROJECT_ROOT / "config")
        self.env_file = Path(env_file) if env_file else (PROJECT_ROOT / ".env")
        self._cache: Dict[str, Any] = {}

        if self.env_file.exists():
            load_dotenv(self.env_file)

        logger.debug(f"ConfigLoader initialized with config_dir: {self.config_dir}")

    def load_yaml(self, config_name: str) -> Dict[str, Any]:
        """
        Load a YAML configuration file.

        Args:
            config_name: Name of the config file (without .yaml extension)

        Returns:
            Dictionary containing configuration data

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file is not valid YAML
        """
        config_path = self.config_dir / f"{config_name}.yaml"

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        logger.debug(f"Loading YAML config from: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

        return self._replace_env_vars(config)

    def _replace_env_vars(self, config: Any) -> Any:
        """
        Recursively replace environment variable placeholders in config.

        Placeholders format: ${ENV_VAR_NAME} or ${ENV_VAR_NAME:default_value}
        """
        if isinstance(config, dict):
            return {k: self._replace_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._replace_env_vars(item) for item in config]
        elif isinstance(config, str):
            if config.startswith("${") and config.endswith("}"):
                env_expr = config[2:-1]

                if ":" in env_expr:
                    var_name, default_value = env_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default_value.strip())
                else:
                    var_name = env_expr.strip()
                    value = os.getenv(var_name)
                    if value is None:
                        logger.warning(f"Environment variable {var_name} not set, using empty string")
                        return ""
                    return value

        return config

    def load_app_config(self, use_cache: bool = True) -> AppConfig:
        """
        Load complete application configuration.

        Args:
            use_cache: Use cached config if available

        Returns:
            Validated AppConfig instance

        Raises:
            ConfigurationError: If validation fails
        """
        cache_key = "app_config"

        if use_cache and cache_key in self._cache:
            logger.debug("Returning cached app config")
            return self._cache[cache_key]

        config_data: Dict[str, Any] = {}

        try:
            config_data.update(self.load_yaml("config"))
        except FileNotFoundError:
            logger.info("config.yaml not found, using defaults")

        config_data = self._apply_env_overrides(config_data)

        try:
            app_config = AppConfig(**config_data)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(str(e)) from e

        logger.info("Application configuration loaded and validated successfully")

        if use_cache:
            self._cache[cache_key] = app_config

        return app_config

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration.

        Example: LOG_LEVEL=DEBUG, TRADEFLOW_TICKERS=AAPL,MSFT
        """
        for section in ("system", "market_data", "storage", "trading"):
            if not isinstance(config.get(section), dict):
                config[section] = {}

        if env_val := os.getenv("ENVIRONMENT"):
            config["system"]["environment"] = env_val

        if env_val := os.getenv("LOG_LEVEL"):
            config["system"]["log_level"] = env_val

        if env_val := os.getenv("DATA_DIR"):
            config["system"]["data_dir"] = env_val

        if env_val := os.getenv("TRADEFLOW_TICKERS"):
            config["trading"]["tickers"] = [t for t in env_val.split(",") if t.strip()]

        if env_val := os.getenv("TRADEFLOW_USE_LIVE_API"):
            config["market_data"]["use_live_api"] = env_val.strip().lower() in _TRUE_VALUES

        if env_val := os.getenv("TRADEFLOW_CSV_FILENAME"):
            config["storage"]["csv_filename"] = env_val

        return config

    def reload(self) -> AppConfig:
        """Reload configuration from disk."""
        logger.info("Reloading configuration from disk")
        self._cache.clear()
        return self.load_app_config(use_cache=False)


def load_app_config(config_dir: Optional[Path] = None) -> AppConfig:
    """Load application configuration from config_dir (default: repo config/)."""
    return ConfigLoader(config_dir=config_dir).load_app_config()
