"""Valuation services exposed to presentation collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Sequence, Union

from opentelemetry import trace

from ..data_access import PortfolioDataAccess
from ..errors import EntityNotFound
from ..fx import CurrencyConverter
from ..schemas.updates import RawUpdateRecord
from ..models import Activity, CurrentValue, DailyRecord, EntityDefinition, EntityKind, EntitySummary
from .activities import ActivityExtractor
from .categories import Category, select_by_tags
from .collection import CollectionAggregator, EntityGroup, ValuedEntity
from .valuation import DEFAULT_RECENT_INCOME_DAYS, ValueCalculator

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass
class _Valuation:
    extractor: ActivityExtractor
    calculator: ValueCalculator
    records: List[RawUpdateRecord]


class EntityHandle:
    """An entity bound to the service that values it."""

    def __init__(self, definition: EntityDefinition, service: "PortfolioValuationService"):
        self.definition = definition
        self._service = service

    def __repr__(self) -> str:
        return f"EntityHandle({self.full_name!r})"

    @property
    def full_name(self) -> str:
        return self.definition.full_name

    @property
    def all_tags(self) -> List[str]:
        return self.definition.all_tags

    async def current_value(self) -> CurrentValue:
        return await self._service.get_current_value(self.definition)

    async def value_history(self) -> List[DailyRecord]:
        return await self._service.get_value_history(self.definition)

    async def activities(self) -> List[Activity]:
        return await self._service.get_activity_ledger(self.definition)

    async def summary(self) -> EntitySummary:
        return await self._service.get_summary(self.definition)


EntityLike = Union[EntityDefinition, ValuedEntity]


class PortfolioValuationService:
    """Read-side facade over the valuation engine.

    Every call reloads update records through the data-access collaborator and
    rebuilds rate tables and ledgers; memoisation belongs to the collaborator.
    """

    def __init__(
        self,
        data_access: PortfolioDataAccess,
        *,
        base_currency: str,
        clock: Callable[[], date] = date.today,
        recent_income_window_days: int = DEFAULT_RECENT_INCOME_DAYS,
    ):
        self.data_access = data_access
        self.base_currency = base_currency
        self._clock = clock
        self._recent_income_window_days = recent_income_window_days
        self.aggregator = CollectionAggregator(base_currency)

    async def _valuation(self) -> _Valuation:
        records = await self.data_access.load_raw_update_records()
        logger.debug("Valuing against %d update records", len(records))
        converter = CurrencyConverter.from_records(records, self.base_currency)
        return _Valuation(
            extractor=ActivityExtractor(converter, self.data_access.resolve_entity_currency),
            calculator=ValueCalculator(converter, clock=self._clock),
            records=records,
        )

    def bind(self, definition: EntityDefinition) -> EntityHandle:
        return EntityHandle(definition, self)

    async def list_entities(self) -> List[EntityHandle]:
        return [self.bind(entity) for entity in await self.data_access.get_portfolio_entities()]

    async def get_entity(self, full_name: str) -> EntityHandle:
        for handle in await self.list_entities():
            if handle.full_name == full_name:
                return handle
        raise EntityNotFound(full_name)

    async def get_activity_ledger(self, entity: EntityDefinition) -> List[Activity]:
        valuation = await self._valuation()
        return await valuation.extractor.extract(entity, valuation.records)

    async def get_current_value(self, entity: EntityDefinition) -> CurrentValue:
        with tracer.start_as_current_span("entity.current_value") as span:
            span.set_attribute("entity.full_name", entity.full_name)
            valuation = await self._valuation()
            activities = await valuation.extractor.extract(entity, valuation.records)
            return valuation.calculator.current_value(entity, activities)

    async def get_value_history(self, entity: EntityDefinition) -> List[DailyRecord]:
        with tracer.start_as_current_span("entity.value_history") as span:
            span.set_attribute("entity.full_name", entity.full_name)
            valuation = await self._valuation()
            activities = await valuation.extractor.extract(entity, valuation.records)
            return valuation.calculator.value_history(entity, activities)

    async def get_summary(self, entity: EntityDefinition) -> EntitySummary:
        valuation = await self._valuation()
        activities = await valuation.extractor.extract(entity, valuation.records)
        recent_income = None
        if entity.kind == EntityKind.SIMPLE:
            recent_income = valuation.calculator.recent_income(
                activities, window_days=self._recent_income_window_days
            )
        return EntitySummary(
            definition=entity,
            current_value=valuation.calculator.current_value(entity, activities),
            activities=activities,
            recent_income=recent_income,
        )

    def _valued(self, entities: Sequence[EntityLike]) -> List[ValuedEntity]:
        return [self.bind(e) if isinstance(e, EntityDefinition) else e for e in entities]

    async def aggregate_current_value(self, entities: Sequence[EntityLike]) -> CurrentValue:
        return await self.aggregator.aggregate_current_value(self._valued(entities))

    async def aggregate_value_history(self, entities: Sequence[EntityLike]) -> List[DailyRecord]:
        return await self.aggregator.aggregate_value_history(self._valued(entities))

    async def portfolio(self) -> EntityGroup:
        return EntityGroup("portfolio", await self.list_entities(), self.aggregator, kind="portfolio")

    async def accounts(self) -> List[EntityGroup]:
        handles = await self.list_entities()
        names: List[str] = []
        for handle in handles:
            account = handle.definition.account
            if account and account not in names:
                names.append(account)
        return [
            EntityGroup(
                name,
                [h for h in handles if h.definition.account == name],
                self.aggregator,
                kind="account",
            )
            for name in names
        ]

    async def account(self, name: str) -> EntityGroup:
        for group in await self.accounts():
            if group.name == name:
                return group
        raise EntityNotFound(name)

    async def tag_group(self, tag: str) -> EntityGroup:
        members = select_by_tags(await self.list_entities(), [tag])
        return EntityGroup(tag, members, self.aggregator, kind="tag")

    async def categories(self) -> List[Category]:
        """Top-level category types, each a tree over every entity."""

        definitions = await self.data_access.get_category_definitions()
        handles = await self.list_entities()
        return [Category(definition, handles, self.aggregator) for definition in definitions.category_types]


__all__ = ["EntityHandle", "PortfolioValuationService"]
