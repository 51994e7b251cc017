"""Pydantic response schemas for valuations, ledgers and histories."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict

from ..models import ActivityType, EntityKind


class _ResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class EntitySchema(_ResponseModel):
    name: str
    full_name: str
    kind: EntityKind
    currency: str | None = None
    account: str | None = None
    all_tags: list[str]


class ActivitySchema(_ResponseModel):
    id: str
    type: ActivityType
    total_value: float
    date: dt.date
    amount: float | None = None
    description: str | None = None
    related_entity: str | None = None
    unit_price: float | None = None
    exchange_rate_used: float | None = None


class CurrentValueSchema(_ResponseModel):
    amount: float
    currency: str
    amount_in_base: float
    last_update_date: dt.date | None = None


class DailyRecordSchema(_ResponseModel):
    date: dt.date
    current_value: CurrentValueSchema
    activities: list[ActivitySchema]


class EntitySummarySchema(_ResponseModel):
    definition: EntitySchema
    current_value: CurrentValueSchema
    activities: list[ActivitySchema]
    recent_income: float | None = None


class CollectionValueSchema(BaseModel):
    name: str
    kind: str
    target_value: float | None = None
    current_value: CurrentValueSchema


__all__ = [
    "EntitySchema",
    "ActivitySchema",
    "CurrentValueSchema",
    "DailyRecordSchema",
    "EntitySummarySchema",
    "CollectionValueSchema",
]
