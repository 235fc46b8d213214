#!/usr/bin/env python3
"""
Backtest Runner Script

Runs a rule-based strategy backtest from the command line.
Input: a JSON strategy config file and either an OHLCV CSV file
       (columns: timestamp,open,high,low,close,volume) or seeded synthetic bars
Output: run summary on stderr and, optionally, the full run as JSON
"""

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path

from loguru import logger
from tqdm import tqdm

from strategy_backtester.core.config import get_settings
from strategy_backtester.core.engine import BacktestOrchestrator, MetricsCalculator
from strategy_backtester.core.enums import RunStatus, Timeframe, UserRole
from strategy_backtester.core.exceptions.backtest import BacktestException
from strategy_backtester.core.interfaces.collaborators import IMarketDataProvider
from strategy_backtester.core.logging_setup import LOG_FORMAT
from strategy_backtester.core.models import BacktestRequest, BacktestRun
from strategy_backtester.infrastructure.auth import RolePermissionChecker
from strategy_backtester.infrastructure.data import (
    DataFrameMarketDataProvider,
    SyntheticMarketDataProvider,
)
from strategy_backtester.infrastructure.storage import (
    InMemoryConfigProvider,
    InMemoryRunRepository,
)

CLI_STRATEGY_ID = "cli"
POLL_INTERVAL_SECONDS = 0.1


def setup_logging(debug: bool = False):
    """Configure logging with loguru."""
    logger.remove()

    level = "DEBUG" if debug else "INFO"
    logger.add(sys.stderr, format=LOG_FORMAT, level=level)


def build_market_data(args: argparse.Namespace) -> IMarketDataProvider:
    """CSV-backed provider when --data is given, synthetic bars otherwise."""
    if args.data:
        provider = DataFrameMarketDataProvider()
        provider.load_csv(args.symbol, args.timeframe, args.data)
        return provider
    seed = args.seed if args.seed is not None else get_settings().synthetic_seed
    logger.info(f"No --data file given, using synthetic bars (seed={seed})")
    return SyntheticMarketDataProvider(seed=seed)


async def run_backtest(args: argparse.Namespace) -> BacktestRun:
    settings = get_settings()
    raw_config = Path(args.strategy).read_text() if args.strategy else None

    orchestrator = BacktestOrchestrator(
        config_provider=InMemoryConfigProvider(
            {CLI_STRATEGY_ID: raw_config} if raw_config is not None else {}
        ),
        market_data_provider=build_market_data(args),
        permission_checker=RolePermissionChecker(),
        repository=InMemoryRunRepository(),
        metrics_calculator=MetricsCalculator(
            risk_free_rate=settings.risk_free_rate,
            trading_days=settings.trading_days_per_year,
        ),
    )

    request = BacktestRequest(
        strategy_id=CLI_STRATEGY_ID,
        symbol=args.symbol,
        timeframe=Timeframe.from_string(args.timeframe),
        start_date=date.fromisoformat(args.start_date),
        end_date=date.fromisoformat(args.end_date),
        initial_capital=args.capital,
        commission_rate=args.commission,
        slippage_rate=args.slippage,
        name=args.name,
        role=UserRole.from_string(args.role),
    )
    run_id = await orchestrator.submit(request)

    with tqdm(total=100, desc=f"Backtest {args.symbol}", unit="%", file=sys.stderr) as progress:
        run = orchestrator.get_run(run_id)
        while not run.status.is_terminal:
            progress.update(run.progress_pct - progress.n)
            await asyncio.sleep(POLL_INTERVAL_SECONDS)
            run = orchestrator.get_run(run_id)
        progress.update(run.progress_pct - progress.n)

    return await orchestrator.wait(run_id)


def log_summary(run: BacktestRun) -> None:
    if run.status != RunStatus.COMPLETED:
        logger.error(f"Backtest {run.status}: {run.error_message or 'no result'}")
        return

    metrics = run.metrics.to_dict() if run.metrics else {}
    logger.success(
        f"Backtest completed: final capital {run.final_capital:.2f} "
        f"(initial {run.initial_capital:.2f}), {len(run.trades)} trades"
    )
    for key, value in metrics.items():
        logger.info(f"  {key}: {value}")


def main():
    parser = argparse.ArgumentParser(
        description="Run a rule-based strategy backtest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Synthetic daily bars with the default (empty) strategy
  python run_backtest.py --symbol AAPL --start-date 2024-01-01 --end-date 2024-12-31

  # CSV bars and a strategy file, writing the full run to JSON
  python run_backtest.py --symbol BTCUSD --timeframe 1h --data data/BTCUSD_1h.csv \\
      --strategy strategies/rsi.json --start-date 2024-01-01 --end-date 2024-03-31 \\
      --output results/rsi_btc.json
        """,
    )

    parser.add_argument("--symbol", type=str, required=True, help="Trading symbol (e.g., AAPL)")
    parser.add_argument(
        "--timeframe",
        type=str,
        choices=[tf.value for tf in Timeframe],
        default=Timeframe.D1.value,
        help="Bar interval (default: 1d)",
    )
    parser.add_argument(
        "--start-date", type=str, required=True, help="Start date in YYYY-MM-DD format"
    )
    parser.add_argument("--end-date", type=str, required=True, help="End date in YYYY-MM-DD format")
    parser.add_argument("--strategy", type=str, help="Path to a JSON strategy config file")
    parser.add_argument("--data", type=str, help="Path to an OHLCV CSV file")
    parser.add_argument("--name", type=str, help="Optional run name")
    parser.add_argument(
        "--capital", type=float, default=None, help="Initial capital (default: from settings)"
    )
    parser.add_argument(
        "--commission", type=float, default=None, help="Commission rate (default: from settings)"
    )
    parser.add_argument(
        "--slippage", type=float, default=None, help="Slippage rate (default: from settings)"
    )
    parser.add_argument(
        "--role",
        type=str,
        choices=[role.value for role in UserRole],
        default=UserRole.RESEARCHER.value,
        help="Role the backtest is submitted as (default: researcher)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for synthetic bars")
    parser.add_argument("--output", type=str, help="Write the full run record to this JSON file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    setup_logging(args.debug)

    try:
        date.fromisoformat(args.start_date)
        date.fromisoformat(args.end_date)
    except ValueError:
        logger.error("Invalid date format. Use YYYY-MM-DD format.")
        return 1

    settings = get_settings()
    if args.capital is None:
        args.capital = settings.default_initial_capital
    if args.commission is None:
        args.commission = settings.default_commission_rate
    if args.slippage is None:
        args.slippage = settings.default_slippage_rate

    try:
        run = asyncio.run(run_backtest(args))
    except BacktestException as e:
        logger.error(f"Backtest rejected: {e}")
        return 1
    except OSError as e:
        logger.error(f"Failed to read input: {e}")
        return 1

    log_summary(run)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(run.to_dict(), indent=2))
        logger.info(f"Run written to {output_path}")

    return 0 if run.status == RunStatus.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main())
