"""
Backtest API endpoints.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from loguru import logger

from strategy_backtester.api.dependencies import get_orchestrator, get_user_role
from strategy_backtester.api.schemas.api_models import (
    BacktestCreateRequest,
    BacktestListResponse,
    BacktestRunResponse,
    BacktestSubmitResponse,
    CancelResponse,
)
from strategy_backtester.core.engine import BacktestOrchestrator
from strategy_backtester.core.enums import RunStatus, UserRole
from strategy_backtester.core.models import RunFilter

router = APIRouter()


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def submit_backtest(
    payload: BacktestCreateRequest,
    role: UserRole = Depends(get_user_role),
    orchestrator: BacktestOrchestrator = Depends(get_orchestrator),
) -> BacktestSubmitResponse:
    """Submit a new backtest for execution."""
    backtest_id = await orchestrator.submit(payload.to_domain(role))
    return BacktestSubmitResponse(
        backtest_id=backtest_id,
        status=RunStatus.PENDING,
        message="Backtest submitted",
    )


@router.get("")
async def list_backtests(
    strategy_id: str | None = None,
    symbol: str | None = None,
    status_filter: RunStatus | None = Query(default=None, alias="status"),
    orchestrator: BacktestOrchestrator = Depends(get_orchestrator),
) -> BacktestListResponse:
    """List backtest runs, newest first, without their series."""
    runs = orchestrator.list_runs(
        RunFilter(strategy_id=strategy_id, symbol=symbol, status=status_filter)
    )
    return BacktestListResponse(
        backtests=[BacktestRunResponse.from_run(run, include_series=False) for run in runs],
        total=len(runs),
    )


@router.get("/{backtest_id}")
async def get_backtest(
    backtest_id: str,
    include_series: bool = True,
    orchestrator: BacktestOrchestrator = Depends(get_orchestrator),
) -> BacktestRunResponse:
    """Get a backtest run with progress, metrics, curves and trades."""
    run = orchestrator.get_run(backtest_id)
    return BacktestRunResponse.from_run(run, include_series=include_series)


@router.post("/{backtest_id}/cancel")
async def cancel_backtest(
    backtest_id: str,
    orchestrator: BacktestOrchestrator = Depends(get_orchestrator),
) -> CancelResponse:
    """Request cancellation of a pending or running backtest."""
    cancelled = orchestrator.cancel(backtest_id)
    run = orchestrator.get_run(backtest_id)
    return CancelResponse(backtest_id=backtest_id, cancelled=cancelled, status=run.status)


@router.delete("/{backtest_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_backtest(
    backtest_id: str,
    orchestrator: BacktestOrchestrator = Depends(get_orchestrator),
) -> Response:
    """Delete a finished backtest run."""
    orchestrator.delete_run(backtest_id)
    logger.info(f"Backtest {backtest_id} deleted via API")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
