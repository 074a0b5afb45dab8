"""
Main entry point for tradeflow.

Runs decision cycles over the configured tickers:
    market data -> rules -> aggregate -> state machine -> decision -> CSV
"""

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from tradeflow.config.loader import ConfigLoader
from tradeflow.config.settings import AppConfig, SystemConfig, TradingConfig
from tradeflow.decision.engine import create_default_decision_engine
from tradeflow.errors import ConfigurationError
from tradeflow.market_data.provider import MarketDataProvider
from tradeflow.storage.csv_sink import CsvDecisionSink
from tradeflow.utils.logger import setup_logging
from tradeflow.workflows import (
    TickerFailure,
    TradeWorkflow,
    UniverseWorkflow,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tradeflow",
        description="Run WAIT -> ARMED -> ENTER decision cycles over a set of tickers",
    )
    parser.add_argument("--tickers", help="Comma-separated tickers (overrides config)")
    parser.add_argument("--cycles", type=int, default=1, help="Number of cycles to run (default: 1)")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between cycles (overrides config)")
    parser.add_argument("--output", help="CSV output path (overrides config)")
    parser.add_argument("--config-dir", type=Path, default=None, help="Directory holding config.yaml")
    parser.add_argument("--simulate", action="store_true", help="Use simulated market data only")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of config with command-line overrides applied."""
    updates = {}

    if args.tickers:
        updates["trading"] = TradingConfig(
            **{**config.trading.model_dump(), "tickers": args.tickers.split(",")}
        )
    if args.interval is not None:
        trading = updates.get("trading", config.trading)
        updates["trading"] = trading.model_copy(update={"cycle_interval_seconds": max(args.interval, 0.0)})
    if args.simulate:
        updates["market_data"] = config.market_data.model_copy(update={"use_live_api": False})
    if args.log_level or args.json_logs:
        system_updates = {}
        if args.log_level:
            system_updates["log_level"] = args.log_level.upper()
        if args.json_logs:
            system_updates["json_logs"] = True
        updates["system"] = SystemConfig.model_validate(
            {**config.system.model_dump(), **system_updates}
        )

    return config.model_copy(update=updates) if updates else config


async def run_cycles(
    config: AppConfig,
    cycles: int,
    output_path: Optional[Path] = None,
) -> List:
    """
    Run `cycles` universe cycles and return every cycle's output.

    Args:
        config: Application configuration
        cycles: Number of cycles
        output_path: CSV path (default: config.csv_path)
    """
    engine = create_default_decision_engine(config.decision)
    sink = CsvDecisionSink(output_path or config.csv_path)
    tickers = config.trading.tickers

    for ticker in dict.fromkeys(tickers):
        engine.state_machine.start_session(ticker)

    outputs = []
    async with MarketDataProvider(config.market_data) as provider:
        universe = UniverseWorkflow(TradeWorkflow(provider, engine, sink))

        for cycle in range(1, cycles + 1):
            output = await universe.run(tickers)
            outputs.append(output)

            for result in output.results:
                if isinstance(result, TickerFailure):
                    print(f"[cycle {cycle}] {result.ticker}: FAILED ({result.error})")
                else:
                    print(
                        f"[cycle {cycle}] {result.ticker}: {result.previous_state.value} -> "
                        f"{result.current_state.value} | action={result.action} "
                        f"signal={result.signal.value} confidence={result.decision.confidence:.2f}"
                    )

            if cycle < cycles and config.trading.cycle_interval_seconds > 0:
                await asyncio.sleep(config.trading.cycle_interval_seconds)

    logger.info(f"Decisions written to {sink.path} ({sink.records_written} rows, {sink.failures} failures)")
    return outputs


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cycles < 1:
        parser.error("--cycles must be >= 1")

    try:
        config = ConfigLoader(config_dir=args.config_dir).load_app_config()
        config = apply_cli_overrides(config, args)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        log_level=config.system.log_level,
        json_format=config.system.json_logs,
        correlation_id=uuid.uuid4().hex[:12],
    )

    logger.info(
        f"Starting tradeflow: tickers={','.join(config.trading.tickers)} cycles={args.cycles} "
        f"live_api={config.market_data.use_live_api}"
    )

    try:
        asyncio.run(run_cycles(config, args.cycles, Path(args.output) if args.output else None))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")

    return 0


if __name__ == "__main__":
    sys.exit(main())
