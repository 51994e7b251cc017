"""Per-entity valuation endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from ...schemas import (
    ActivitySchema,
    CurrentValueSchema,
    DailyRecordSchema,
    EntitySchema,
    EntitySummarySchema,
)
from ...services.portfolio import EntityHandle, PortfolioValuationService
from ..dependencies import Entity, ValuationService

router = APIRouter()


@router.get("", response_model=list[EntitySchema])
async def list_entities(service: PortfolioValuationService = ValuationService) -> list[EntitySchema]:
    handles = await service.list_entities()
    return [EntitySchema.model_validate(handle.definition) for handle in handles]


@router.get("/{full_name}/value", response_model=CurrentValueSchema)
async def get_entity_value(entity: EntityHandle = Entity) -> CurrentValueSchema:
    return CurrentValueSchema.model_validate(await entity.current_value())


@router.get("/{full_name}/activities", response_model=list[ActivitySchema])
async def get_entity_activities(entity: EntityHandle = Entity) -> list[ActivitySchema]:
    return [ActivitySchema.model_validate(activity) for activity in await entity.activities()]


@router.get("/{full_name}/history", response_model=list[DailyRecordSchema])
async def get_entity_history(entity: EntityHandle = Entity) -> list[DailyRecordSchema]:
    return [DailyRecordSchema.model_validate(record) for record in await entity.value_history()]


@router.get("/{full_name}/summary", response_model=EntitySummarySchema)
async def get_entity_summary(entity: EntityHandle = Entity) -> EntitySummarySchema:
    return EntitySummarySchema.model_validate(await entity.summary())


__all__ = ["router"]
