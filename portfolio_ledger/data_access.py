"""Data-access collaborators feeding the valuation engine.

``PortfolioDataAccess`` is the seam the engine reads through. The in-memory
store is the reference implementation used by tests and the API; the caching
wrapper memoises reads and drops everything whenever the store reports a write.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from .errors import EntityNotFound
from .models import EntityDefinition
from .schemas.portfolio import (
    CategoryDefinitions,
    PortfolioDefinition,
    parse_categories,
    parse_portfolio,
)
from .schemas.updates import RawUpdateRecord, parse_update_records

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class PortfolioDataAccess(Protocol):
    """Read interface consumed by the valuation engine."""

    async def load_raw_update_records(self) -> List[RawUpdateRecord]:
        """Return update records in chronological order."""
        ...

    async def resolve_entity_currency(self, full_name: str) -> Optional[str]:
        """Return the declared currency of an entity, raising ``EntityNotFound``."""
        ...

    async def get_portfolio_entities(self) -> List[EntityDefinition]:
        ...

    async def get_category_definitions(self) -> CategoryDefinitions:
        ...


def _index_entities(entities: Sequence[EntityDefinition]) -> Dict[str, EntityDefinition]:
    return {entity.full_name: entity for entity in entities}


class InMemoryPortfolioStore:
    """Portfolio definition, update records and categories held in memory."""

    def __init__(
        self,
        portfolio: PortfolioDefinition | None = None,
        updates: Sequence[RawUpdateRecord] = (),
        categories: CategoryDefinitions | None = None,
    ):
        self._portfolio = portfolio or PortfolioDefinition()
        self._updates: List[RawUpdateRecord] = list(updates)
        self._categories = categories or CategoryDefinitions()
        self._listeners: List[ChangeListener] = []

    @classmethod
    def from_payloads(
        cls,
        *,
        portfolio: Mapping[str, Any] | None = None,
        updates: Sequence[Mapping[str, Any]] = (),
        categories: Mapping[str, Any] | None = None,
    ) -> "InMemoryPortfolioStore":
        """Validate raw JSON-like payloads and build a store from them."""

        return cls(
            portfolio=parse_portfolio(portfolio) if portfolio is not None else None,
            updates=parse_update_records(updates),
            categories=parse_categories(categories) if categories is not None else None,
        )

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` for write notifications; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    async def load_raw_update_records(self) -> List[RawUpdateRecord]:
        # stable, so same-day records keep their append order
        return sorted(self._updates, key=lambda record: record.date)

    async def resolve_entity_currency(self, full_name: str) -> Optional[str]:
        entity = _index_entities(self._portfolio.entities()).get(full_name)
        if entity is None:
            raise EntityNotFound(full_name)
        return entity.currency

    async def get_portfolio_entities(self) -> List[EntityDefinition]:
        return self._portfolio.entities()

    async def get_category_definitions(self) -> CategoryDefinitions:
        return self._categories

    async def append_update_record(self, record: RawUpdateRecord | Mapping[str, Any]) -> RawUpdateRecord:
        if not isinstance(record, RawUpdateRecord):
            record = parse_update_records([record])[0]
        self._updates.append(record)
        logger.info("Stored update record dated %s", record.date.isoformat())
        self._notify()
        return record

    async def replace_portfolio(self, portfolio: PortfolioDefinition | Mapping[str, Any]) -> None:
        if not isinstance(portfolio, PortfolioDefinition):
            portfolio = parse_portfolio(portfolio)
        self._portfolio = portfolio
        logger.info("Portfolio saved with %d entity definitions", len(portfolio.entities()))
        self._notify()

    async def replace_categories(self, categories: CategoryDefinitions | Mapping[str, Any]) -> None:
        if not isinstance(categories, CategoryDefinitions):
            categories = parse_categories(categories)
        self._categories = categories
        self._notify()


class CachingPortfolioDataAccess:
    """Cache wrapper to avoid reloading unchanged portfolio data."""

    def __init__(self, delegate: PortfolioDataAccess):
        self.delegate = delegate
        self._records: Optional[List[RawUpdateRecord]] = None
        self._entities: Optional[Dict[str, EntityDefinition]] = None
        self._categories: Optional[CategoryDefinitions] = None
        subscribe = getattr(delegate, "subscribe", None)
        self._unsubscribe: Optional[Callable[[], None]] = subscribe(self.invalidate) if subscribe else None

    def invalidate(self) -> None:
        logger.debug("Invalidating cached portfolio data")
        self._records = None
        self._entities = None
        self._categories = None

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.invalidate()

    async def load_raw_update_records(self) -> List[RawUpdateRecord]:
        if self._records is None:
            self._records = list(await self.delegate.load_raw_update_records())
        return list(self._records)

    async def _entity_index(self) -> Dict[str, EntityDefinition]:
        if self._entities is None:
            self._entities = _index_entities(await self.delegate.get_portfolio_entities())
        return self._entities

    async def resolve_entity_currency(self, full_name: str) -> Optional[str]:
        entity = (await self._entity_index()).get(full_name)
        if entity is None:
            raise EntityNotFound(full_name)
        return entity.currency

    async def get_portfolio_entities(self) -> List[EntityDefinition]:
        return list((await self._entity_index()).values())

    async def get_category_definitions(self) -> CategoryDefinitions:
        if self._categories is None:
            self._categories = await self.delegate.get_category_definitions()
        return self._categories


__all__ = [
    "ChangeListener",
    "PortfolioDataAccess",
    "InMemoryPortfolioStore",
    "CachingPortfolioDataAccess",
]
