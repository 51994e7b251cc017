"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .collections import router as collections_router
from .entities import router as entities_router

api_router = APIRouter()
api_router.include_router(entities_router, prefix="/entities", tags=["entities"])
api_router.include_router(collections_router, tags=["collections"])

__all__ = ["api_router"]
