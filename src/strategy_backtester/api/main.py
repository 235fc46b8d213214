"""
FastAPI main application for the strategy backtester.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from strategy_backtester import __version__
from strategy_backtester.core.config import get_settings
from strategy_backtester.core.exceptions.backtest import (
    PermissionDeniedError,
    RunNotFoundError,
    ValidationError,
)
from strategy_backtester.core.logging_setup import configure_logging

from .dependencies import get_orchestrator
from .routers import backtest
from .schemas.api_models import ErrorResponse


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings().log_level)
    logger.info(f"Strategy Backtester API {__version__} starting")
    yield
    await get_orchestrator().shutdown()
    logger.info("Strategy Backtester API stopped")


app = FastAPI(
    title="Strategy Backtester API",
    version=__version__,
    description="API for rule-based trading strategy backtesting",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8080",
    ],
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
        "X-User-Role",
    ],
)

app.include_router(backtest.router, prefix="/api/backtests", tags=["backtests"])


def _error_response(status_code: int, error: str, exc: Exception) -> JSONResponse:
    body = ErrorResponse(error=error, message=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} forbidden: {exc}")
    return _error_response(status.HTTP_403_FORBIDDEN, "permission_denied", exc)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, "validation_error", exc)


@app.exception_handler(RunNotFoundError)
async def run_not_found_handler(request: Request, exc: RunNotFoundError) -> JSONResponse:
    body = ErrorResponse(error="not_found", message=str(exc), backtest_id=exc.run_id)
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body.model_dump())


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint returning API information."""
    return {"message": "Strategy Backtester API", "version": __version__, "status": "running"}


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
