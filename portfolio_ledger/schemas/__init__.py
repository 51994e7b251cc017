"""Pydantic schema exports."""

from .portfolio import (
    AccountDefinitionSchema,
    AssetDefinitionSchema,
    CategoryDefinitions,
    CategorySchema,
    PortfolioDefinition,
    parse_categories,
    parse_portfolio,
)
from .updates import (
    RawAssetEvents,
    RawEvent,
    RawExpenseEvent,
    RawIncomeEvent,
    RawRate,
    RawSnapshotEvent,
    RawTransfer,
    RawUpdateRecord,
    parse_update_records,
)
from .valuation import (
    ActivitySchema,
    CollectionValueSchema,
    CurrentValueSchema,
    DailyRecordSchema,
    EntitySchema,
    EntitySummarySchema,
)

__all__ = [
    "AccountDefinitionSchema",
    "AssetDefinitionSchema",
    "CategoryDefinitions",
    "CategorySchema",
    "PortfolioDefinition",
    "parse_categories",
    "parse_portfolio",
    "RawAssetEvents",
    "RawEvent",
    "RawExpenseEvent",
    "RawIncomeEvent",
    "RawRate",
    "RawSnapshotEvent",
    "RawTransfer",
    "RawUpdateRecord",
    "parse_update_records",
    "ActivitySchema",
    "CollectionValueSchema",
    "CurrentValueSchema",
    "DailyRecordSchema",
    "EntitySchema",
    "EntitySummarySchema",
]
