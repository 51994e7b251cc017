"""FastAPI application entrypoint."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..config import LedgerSettings, get_settings
from ..core.logging import setup_logging
from ..core.telemetry import setup_telemetry
from ..data_access import CachingPortfolioDataAccess, PortfolioDataAccess
from ..errors import EntityNotFound, InvalidPortfolioData, MissingExchangeRate
from ..services.portfolio import PortfolioValuationService
from .routes import api_router


def create_app(
    data_access: PortfolioDataAccess,
    settings: LedgerSettings | None = None,
    *,
    clock: Callable[[], date] = date.today,
    configure_logging: bool = False,
) -> FastAPI:
    """Build the API over ``data_access``, memoising reads between writes."""

    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version="0.1.0")
    setup_telemetry(app, settings)
    app.state.settings = settings
    app.state.valuation_service = PortfolioValuationService(
        CachingPortfolioDataAccess(data_access),
        base_currency=settings.base_currency,
        clock=clock,
        recent_income_window_days=settings.recent_income_window_days,
    )

    @app.exception_handler(MissingExchangeRate)
    async def missing_rate_handler(request: Request, exc: MissingExchangeRate) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    @app.exception_handler(EntityNotFound)
    async def not_found_handler(request: Request, exc: EntityNotFound) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InvalidPortfolioData)
    async def invalid_data_handler(request: Request, exc: InvalidPortfolioData) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Return service readiness metadata."""

        return {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
            "base_currency": settings.base_currency,
        }

    app.include_router(api_router)
    return app


__all__ = ["create_app"]
