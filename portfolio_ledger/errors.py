"""Exception hierarchy for the valuation engine."""

from __future__ import annotations

from datetime import date


class PortfolioError(Exception):
    """Base class for all portfolio ledger errors."""


class EntityNotFound(PortfolioError, LookupError):
    """Raised when a full name does not resolve to a portfolio entity."""

    def __init__(self, full_name: str):
        super().__init__(f'Entity "{full_name}" not found in portfolio data')
        self.full_name = full_name


class InvalidPortfolioData(PortfolioError, ValueError):
    """Raised when raw portfolio or update payloads fail validation."""


class MissingExchangeRate(PortfolioError, KeyError):
    """No rate exists for a currency that needs converting."""

    def __init__(self, currency: str, target_date: date, entity: str | None = None):
        self.currency = currency
        self.target_date = target_date
        self.entity = entity
        super().__init__(currency)

    def with_entity(self, entity: str) -> "MissingExchangeRate":
        return MissingExchangeRate(self.currency, self.target_date, entity=entity)

    def __str__(self) -> str:
        message = (
            f"No exchange rate found for currency {self.currency} near date "
            f"{self.target_date.isoformat()}"
        )
        if self.entity:
            message = f'Failed to calculate value for "{self.entity}": {message}'
        return message


class TransferConversionError(PortfolioError):
    """A transfer amount could not be converted into the entity currency."""


class EntityValuationError(PortfolioError):
    """Wraps the failure of one entity inside a collection total."""

    def __init__(self, full_name: str, cause: BaseException):
        super().__init__(f'Error calculating value for "{full_name}": {cause}')
        self.full_name = full_name
        self.cause = cause


class HistoryComputationError(EntityValuationError):
    """Wraps the failure of one entity inside a collection history."""

    def __init__(self, full_name: str, cause: BaseException):
        PortfolioError.__init__(self, f'Error calculating value history for "{full_name}": {cause}')
        self.full_name = full_name
        self.cause = cause


__all__ = [
    "PortfolioError",
    "EntityNotFound",
    "InvalidPortfolioData",
    "MissingExchangeRate",
    "TransferConversionError",
    "EntityValuationError",
    "HistoryComputationError",
]
