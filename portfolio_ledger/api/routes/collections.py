"""Aggregate endpoints for accounts, tags, categories and the whole portfolio."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...errors import EntityNotFound
from ...schemas import CollectionValueSchema, CurrentValueSchema, DailyRecordSchema
from ...services.categories import Category
from ...services.collection import EntityGroup
from ...services.portfolio import PortfolioValuationService
from ..dependencies import ValuationService

router = APIRouter()


async def _collection_value(collection: EntityGroup | Category) -> CollectionValueSchema:
    value = await collection.current_value()
    if isinstance(collection, Category):
        kind, target = "category", collection.target_value
    else:
        kind, target = collection.kind, None
    return CollectionValueSchema(
        name=collection.full_name,
        kind=kind,
        target_value=target,
        current_value=CurrentValueSchema.model_validate(value),
    )


async def _history(collection: EntityGroup | Category) -> list[DailyRecordSchema]:
    return [DailyRecordSchema.model_validate(record) for record in await collection.value_history()]


@router.get("/portfolio/value", response_model=CollectionValueSchema)
async def get_portfolio_value(service: PortfolioValuationService = ValuationService) -> CollectionValueSchema:
    return await _collection_value(await service.portfolio())


@router.get("/portfolio/history", response_model=list[DailyRecordSchema])
async def get_portfolio_history(service: PortfolioValuationService = ValuationService) -> list[DailyRecordSchema]:
    return await _history(await service.portfolio())


@router.get("/accounts", response_model=list[CollectionValueSchema])
async def list_accounts(service: PortfolioValuationService = ValuationService) -> list[CollectionValueSchema]:
    return [await _collection_value(account) for account in await service.accounts()]


@router.get("/accounts/{name}/history", response_model=list[DailyRecordSchema])
async def get_account_history(
    name: str,
    service: PortfolioValuationService = ValuationService,
) -> list[DailyRecordSchema]:
    try:
        account = await service.account(name)
    except EntityNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return await _history(account)


@router.get("/tags/{tag}/value", response_model=CollectionValueSchema)
async def get_tag_value(tag: str, service: PortfolioValuationService = ValuationService) -> CollectionValueSchema:
    return await _collection_value(await service.tag_group(tag))


@router.get("/categories", response_model=list[CollectionValueSchema])
async def list_categories(service: PortfolioValuationService = ValuationService) -> list[CollectionValueSchema]:
    values: list[CollectionValueSchema] = []
    pending = list(await service.categories())
    while pending:
        category = pending.pop(0)
        values.append(await _collection_value(category))
        pending[:0] = category.sub_categories()
    return values


__all__ = ["router"]
