"""
In-memory stores for backtest runs and strategy configurations.

Process-local reference implementations of the repository and config provider
interfaces. Runs are written from the simulation worker thread as well as the
event loop, so the run map is guarded by a lock.
"""

import threading
from pathlib import Path

from loguru import logger

from strategy_backtester.core.exceptions.backtest import DataError
from strategy_backtester.core.interfaces.collaborators import IConfigProvider, IRunRepository
from strategy_backtester.core.models import BacktestRun, RunFilter


class InMemoryRunRepository(IRunRepository):
    """Thread-safe dictionary of run records."""

    def __init__(self) -> None:
        self._runs: dict[str, BacktestRun] = {}
        self._lock = threading.Lock()

    def save(self, run: BacktestRun) -> None:
        with self._lock:
            self._runs[run.id] = run

    def get(self, run_id: str) -> BacktestRun | None:
        with self._lock:
            return self._runs.get(run_id)

    def find(self, run_filter: RunFilter | None = None) -> list[BacktestRun]:
        with self._lock:
            runs = list(self._runs.values())
        if run_filter is not None:
            runs = [run for run in runs if run_filter.matches(run)]
        return sorted(runs, key=lambda run: run.created_at, reverse=True)

    def delete(self, run_id: str) -> bool:
        with self._lock:
            return self._runs.pop(run_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)


class InMemoryConfigProvider(IConfigProvider):
    """Strategy config texts held in a dictionary keyed by strategy id."""

    def __init__(self, configs: dict[str, str] | None = None) -> None:
        self._configs: dict[str, str] = dict(configs or {})

    @classmethod
    def from_directory(cls, directory: str | Path) -> "InMemoryConfigProvider":
        """
        Load every ``<strategy_id>.json`` file in a directory.

        File contents are stored as-is; they are only parsed when a run starts.

        Raises:
            DataError: If the directory does not exist
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise DataError(f"Strategy config directory not found: {directory}")

        provider = cls()
        for path in sorted(directory.glob("*.json")):
            provider.register(path.stem, path.read_text(encoding="utf-8"))
        logger.info(f"Loaded {len(provider)} strategy configs from {directory}")
        return provider

    def __len__(self) -> int:
        return len(self._configs)

    def register(self, strategy_id: str, raw_config: str) -> None:
        """Add or replace the config text of a strategy."""
        self._configs[strategy_id] = raw_config
        logger.debug(f"Registered config for strategy {strategy_id}")

    async def get_strategy_config(self, strategy_id: str) -> str | None:
        raw_config = self._configs.get(strategy_id)
        if raw_config is None:
            logger.info(f"Strategy {strategy_id} has no stored config")
        return raw_config
