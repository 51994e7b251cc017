"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from ..errors import EntityNotFound
from ..services.portfolio import EntityHandle, PortfolioValuationService


def get_valuation_service(request: Request) -> PortfolioValuationService:
    service = getattr(request.app.state, "valuation_service", None)
    if service is None:  # pragma: no cover - misconfigured application
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Valuation service not configured")
    return service


async def get_entity_handle(
    full_name: str,
    service: PortfolioValuationService = Depends(get_valuation_service),
) -> EntityHandle:
    try:
        return await service.get_entity(full_name)
    except EntityNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


ValuationService = Depends(get_valuation_service)
Entity = Depends(get_entity_handle)


__all__ = ["get_valuation_service", "get_entity_handle", "ValuationService", "Entity"]
