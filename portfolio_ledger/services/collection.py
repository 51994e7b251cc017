"""Aggregate values and histories across many entities.

Totals are always expressed in the base currency. One entity that cannot be
valued is logged and left out so the rest of the collection still reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence

from opentelemetry import trace

from ..errors import EntityValuationError, HistoryComputationError
from ..models import Activity, CurrentValue, DailyRecord, sort_activities

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ValuedEntity(Protocol):
    """Anything that can report its value, value history and ledger."""

    @property
    def full_name(self) -> str:
        ...

    async def current_value(self) -> CurrentValue:
        ...

    async def value_history(self) -> List[DailyRecord]:
        ...

    async def activities(self) -> List[Activity]:
        ...


@dataclass(frozen=True)
class _MemberHistory:
    full_name: str
    records: Dict[date, DailyRecord]
    activities: Dict[date, List[Activity]]


def _later(current: Optional[date], candidate: Optional[date]) -> Optional[date]:
    if candidate is None:
        return current
    if current is None or candidate > current:
        return candidate
    return current


class CollectionAggregator:
    """Combine entity valuations into one base-currency view."""

    def __init__(self, base_currency: str):
        self.base_currency = base_currency

    async def aggregate_current_value(self, entities: Sequence[ValuedEntity]) -> CurrentValue:
        total = 0.0
        latest_update: Optional[date] = None

        with tracer.start_as_current_span("collection.current_value") as span:
            span.set_attribute("collection.size", len(entities))
            skipped = 0
            for entity in entities:
                try:
                    value = await entity.current_value()
                except Exception as exc:
                    skipped += 1
                    logger.warning("%s", EntityValuationError(entity.full_name, exc))
                    continue
                total += value.amount_in_base
                latest_update = _later(latest_update, value.last_update_date)
            span.set_attribute("collection.skipped", skipped)

        return CurrentValue(
            amount=total,
            currency=self.base_currency,
            amount_in_base=total,
            last_update_date=latest_update,
        )

    async def aggregate_value_history(self, entities: Sequence[ValuedEntity]) -> List[DailyRecord]:
        with tracer.start_as_current_span("collection.value_history") as span:
            span.set_attribute("collection.size", len(entities))
            histories = await self._collect_histories(entities)
            span.set_attribute("collection.skipped", len(entities) - len(histories))
            return self._merge_histories(histories)

    async def aggregate_activities(self, entities: Sequence[ValuedEntity]) -> List[Activity]:
        """Concatenate member ledgers, each activity tagged with its member."""

        activities: List[Activity] = []
        for entity in entities:
            try:
                ledger = await entity.activities()
            except Exception as exc:
                logger.warning("%s", EntityValuationError(entity.full_name, exc))
                continue
            activities.extend(activity.tagged_with(entity.full_name) for activity in ledger)
        return sort_activities(activities)

    async def _collect_histories(self, entities: Sequence[ValuedEntity]) -> List[_MemberHistory]:
        histories: List[_MemberHistory] = []
        for entity in entities:
            try:
                records = await entity.value_history()
                ledger = await entity.activities()
            except Exception as exc:
                logger.warning("%s", HistoryComputationError(entity.full_name, exc))
                continue
            by_day: Dict[date, List[Activity]] = {}
            for activity in ledger:
                by_day.setdefault(activity.date, []).append(activity)
            histories.append(
                _MemberHistory(
                    full_name=entity.full_name,
                    records={record.date: record for record in records},
                    activities=by_day,
                )
            )
        return histories

    def _merge_histories(self, histories: List[_MemberHistory]) -> List[DailyRecord]:
        axis = sorted({day for member in histories for day in member.records})
        last_known: Dict[int, float] = {}
        merged: List[DailyRecord] = []

        for day in axis:
            total = 0.0
            latest_update: Optional[date] = None
            activities: List[Activity] = []
            for index, member in enumerate(histories):
                record = member.records.get(day)
                if record is not None:
                    last_known[index] = record.current_value.amount_in_base
                    latest_update = _later(latest_update, record.current_value.last_update_date)
                # forward-fill: entities without a record on this day keep their last value
                total += last_known.get(index, 0.0)
                activities.extend(
                    activity.tagged_with(member.full_name) for activity in member.activities.get(day, ())
                )
            merged.append(
                DailyRecord(
                    date=day,
                    current_value=CurrentValue(
                        amount=total,
                        currency=self.base_currency,
                        amount_in_base=total,
                        last_update_date=latest_update,
                    ),
                    activities=activities,
                )
            )
        return merged


class EntityGroup:
    """A named collection (account, tag, whole portfolio) valued as one entity."""

    def __init__(
        self,
        name: str,
        members: Sequence[ValuedEntity],
        aggregator: CollectionAggregator,
        *,
        kind: str = "collection",
    ):
        self.name = name
        self.kind = kind
        self.members = list(members)
        self._aggregator = aggregator

    @property
    def full_name(self) -> str:
        return self.name

    async def current_value(self) -> CurrentValue:
        return await self._aggregator.aggregate_current_value(self.members)

    async def value_history(self) -> List[DailyRecord]:
        return await self._aggregator.aggregate_value_history(self.members)

    async def activities(self) -> List[Activity]:
        return await self._aggregator.aggregate_activities(self.members)


__all__ = ["ValuedEntity", "CollectionAggregator", "EntityGroup"]
