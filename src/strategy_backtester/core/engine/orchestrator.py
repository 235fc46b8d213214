"""
Backtest run orchestration.

Owns the lifecycle of backtest runs: PENDING -> RUNNING -> COMPLETED | FAILED |
CANCELLED. Each submitted run executes as one asyncio task; the bar loop itself
runs in a worker thread so progress checkpoints and cancellation requests stay
responsive. Progress and results are written to the run repository at discrete
checkpoints (loop start, each progress change, completion, failure or
cancellation).
"""

import asyncio
from datetime import UTC, datetime

from loguru import logger

from strategy_backtester.core.engine.config_parser import StrategyConfigParser
from strategy_backtester.core.engine.metrics import MetricsCalculator
from strategy_backtester.core.engine.rules import RuleEvaluator
from strategy_backtester.core.engine.simulator import TradeSimulator
from strategy_backtester.core.enums import RunStatus
from strategy_backtester.core.exceptions.backtest import (
    DataUnavailableError,
    InvalidStatusTransitionError,
    PermissionDeniedError,
    RunNotFoundError,
    ValidationError,
)
from strategy_backtester.core.interfaces.collaborators import (
    IConfigProvider,
    IMarketDataProvider,
    IPermissionChecker,
    IRunRepository,
)
from strategy_backtester.core.models import (
    BacktestRequest,
    BacktestRun,
    RunFilter,
    SimulationResult,
)
from strategy_backtester.core.protocols import CancellationToken


class BacktestOrchestrator:
    """
    Submits, executes and tracks backtest runs.

    Runs share no mutable state besides their own repository records.
    Submissions are not throttled.
    """

    def __init__(
        self,
        config_provider: IConfigProvider,
        market_data_provider: IMarketDataProvider,
        permission_checker: IPermissionChecker,
        repository: IRunRepository,
        config_parser: StrategyConfigParser | None = None,
        metrics_calculator: MetricsCalculator | None = None,
        rule_evaluator: RuleEvaluator | None = None,
    ) -> None:
        self.config_provider = config_provider
        self.market_data_provider = market_data_provider
        self.permission_checker = permission_checker
        self.repository = repository
        self.config_parser = config_parser or StrategyConfigParser()
        self.metrics_calculator = metrics_calculator or MetricsCalculator()
        self.rule_evaluator = rule_evaluator or RuleEvaluator()
        self._tasks: dict[str, asyncio.Task] = {}
        self._tokens: dict[str, CancellationToken] = {}

    # Public API

    async def submit(self, request: BacktestRequest) -> str:
        """
        Create a PENDING run and schedule its execution.

        Args:
            request: Backtest parameters including the caller's role

        Returns:
            The new run id

        Raises:
            PermissionDeniedError: If the role may not run backtests
            ValidationError: If request fields are malformed
        """
        if not self.permission_checker.can_run_backtest(request.role):
            logger.warning(f"Backtest submission rejected for role {request.role}")
            raise PermissionDeniedError(str(request.role))

        request.validate()

        run = BacktestRun.from_request(request)
        self.repository.save(run)
        self._tokens[run.id] = CancellationToken()

        task = asyncio.create_task(self.execute(run.id), name=f"backtest-{run.id}")
        self._tasks[run.id] = task
        task.add_done_callback(lambda t, run_id=run.id: self._on_task_done(run_id, t))

        logger.info(
            f"Submitted backtest {run.id}: {run.symbol} {run.timeframe} "
            f"{run.start_date}..{run.end_date} strategy={run.strategy_id}"
        )
        return run.id

    def get_run(self, run_id: str) -> BacktestRun:
        """
        Fetch a run record.

        Raises:
            RunNotFoundError: If the id is unknown
        """
        run = self.repository.get(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run

    def list_runs(self, run_filter: RunFilter | None = None) -> list[BacktestRun]:
        """List runs matching a filter, newest first."""
        return self.repository.find(run_filter)

    def cancel(self, run_id: str) -> bool:
        """
        Request early termination of a run.

        A running simulation stops at its next bar and keeps the partial curves
        and trades it produced. Returns False if the run already finished.

        Raises:
            RunNotFoundError: If the id is unknown
        """
        run = self.get_run(run_id)
        if run.status.is_terminal:
            return False

        token = self._tokens.setdefault(run_id, CancellationToken())
        token.cancel()
        logger.info(f"Cancellation requested for backtest {run_id} ({run.status})")

        task = self._tasks.get(run_id)
        if run.status == RunStatus.PENDING and (task is None or task.done()):
            self._transition(run, RunStatus.CANCELLED)
            run.completed_at = datetime.now(UTC)
            self.repository.save(run)
        return True

    def delete_run(self, run_id: str) -> None:
        """
        Delete a finished run record.

        Raises:
            RunNotFoundError: If the id is unknown
            ValidationError: If the run is still pending or running
        """
        run = self.get_run(run_id)
        if run.status.is_active:
            raise ValidationError(f"Cannot delete backtest {run_id} while it is {run.status}")
        self.repository.delete(run_id)
        logger.info(f"Deleted backtest {run_id}")

    async def wait(self, run_id: str) -> BacktestRun:
        """Wait for a submitted run to finish and return its record."""
        task = self._tasks.get(run_id)
        if task is not None:
            await asyncio.shield(task)
        return self.get_run(run_id)

    async def shutdown(self) -> None:
        """Cancel every active run and wait for their tasks."""
        for token in self._tokens.values():
            token.cancel()
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # Execution

    async def execute(self, run_id: str) -> BacktestRun:
        """
        Execute a PENDING run to a terminal state.

        Loading failures and unexpected computation errors move the run to
        FAILED with the captured message and discard any accumulated results.
        Nothing is retried.
        """
        run = self.get_run(run_id)
        token = self._tokens.setdefault(run_id, CancellationToken())

        try:
            raw_config = await self.config_provider.get_strategy_config(run.strategy_id)
            config = self.config_parser.parse(raw_config)

            bars = await self.market_data_provider.get_price_bars(
                run.symbol, run.timeframe, run.start_date, run.end_date
            )
            if not bars:
                raise DataUnavailableError(run.symbol, run.timeframe, run.start_date, run.end_date)

            if token.is_cancelled:
                self._finish_cancelled(run, None)
                return run

            self._transition(run, RunStatus.RUNNING)
            run.progress_pct = 0
            run.started_at = datetime.now(UTC)
            self.repository.save(run)
            logger.info(f"Backtest {run_id} running over {len(bars)} bars")

            simulator = TradeSimulator(
                commission_rate=run.commission_rate,
                slippage_rate=run.slippage_rate,
                timeframe=run.timeframe,
                rule_evaluator=self.rule_evaluator,
            )
            result = await asyncio.to_thread(
                simulator.run,
                bars,
                config,
                run.initial_capital,
                lambda progress: self._record_progress(run, progress),
                token,
            )

            if result.cancelled:
                self._finish_cancelled(run, result)
                return run

            metrics = self.metrics_calculator.calculate(
                result.trades,
                result.equity_curve,
                run.initial_capital,
                result.final_capital,
                run.start_date,
                run.end_date,
            )
            self._apply_result(run, result)
            run.metrics = metrics
            self._transition(run, RunStatus.COMPLETED)
            run.progress_pct = 100
            run.completed_at = datetime.now(UTC)
            self.repository.save(run)
            logger.success(
                f"Backtest {run_id} completed: final capital {result.final_capital:.2f}, "
                f"{len(result.trades)} trades"
            )

        except asyncio.CancelledError:
            token.cancel()
            self._finish_cancelled(run, None)
            raise
        except Exception as e:
            logger.exception(f"Backtest {run_id} failed: {e}")
            self._finish_failed(run, str(e) or type(e).__name__)

        return run

    # Helpers

    def _record_progress(self, run: BacktestRun, progress: int) -> None:
        """Progress checkpoint, called from the simulation thread."""
        run.progress_pct = progress
        self.repository.save(run)

    def _apply_result(self, run: BacktestRun, result: SimulationResult) -> None:
        run.final_capital = result.final_capital
        run.trades = result.trades
        run.equity_curve = result.equity_curve
        run.drawdown_curve = result.drawdown_curve

    def _finish_cancelled(self, run: BacktestRun, result: SimulationResult | None) -> None:
        if run.status.is_terminal:
            return
        if result is not None:
            self._apply_result(run, result)
        self._transition(run, RunStatus.CANCELLED)
        run.completed_at = datetime.now(UTC)
        self.repository.save(run)
        logger.warning(f"Backtest {run.id} cancelled at {run.progress_pct}%")

    def _finish_failed(self, run: BacktestRun, message: str) -> None:
        run.clear_results()
        run.error_message = message
        if run.status.can_transition_to(RunStatus.FAILED):
            run.status = RunStatus.FAILED
        run.completed_at = datetime.now(UTC)
        self.repository.save(run)

    def _transition(self, run: BacktestRun, target: RunStatus) -> None:
        if not run.status.can_transition_to(target):
            raise InvalidStatusTransitionError(run.id, run.status, target)
        logger.debug(f"Backtest {run.id}: {run.status} -> {target}")
        run.status = target

    def _on_task_done(self, run_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(run_id, None)
        self._tokens.pop(run_id, None)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Backtest task {run_id} ended with error: {task.exception()}")
