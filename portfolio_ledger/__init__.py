"""Core package for the portfolio ledger valuation engine."""

from .data_access import CachingPortfolioDataAccess, InMemoryPortfolioStore, PortfolioDataAccess
from .errors import (
    EntityNotFound,
    EntityValuationError,
    HistoryComputationError,
    InvalidPortfolioData,
    MissingExchangeRate,
    PortfolioError,
    TransferConversionError,
)
from .fx import CurrencyConverter, ExchangeRateTable
from .models import Activity, ActivityType, CurrentValue, DailyRecord, EntityDefinition, EntityKind
from .services.portfolio import EntityHandle, PortfolioValuationService

__all__ = [
    "CachingPortfolioDataAccess",
    "InMemoryPortfolioStore",
    "PortfolioDataAccess",
    "EntityNotFound",
    "EntityValuationError",
    "HistoryComputationError",
    "InvalidPortfolioData",
    "MissingExchangeRate",
    "PortfolioError",
    "TransferConversionError",
    "CurrencyConverter",
    "ExchangeRateTable",
    "Activity",
    "ActivityType",
    "CurrentValue",
    "DailyRecord",
    "EntityDefinition",
    "EntityKind",
    "EntityHandle",
    "PortfolioValuationService",
]
