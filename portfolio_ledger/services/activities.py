"""Activity ledger extraction from raw update records.

The extractor walks update records oldest to newest and turns every event and
transfer that names an entity into a normalized :class:`Activity`. Transfers on
non-stock entities are converted into the entity's currency using the rate
recorded nearest to the transfer date; stock transfers are share movements and
stay unconverted.
"""

from __future__ import annotations

import itertools
import logging
from datetime import date
from typing import Awaitable, Callable, Iterator, List, Optional, Sequence, Tuple

from ..errors import PortfolioError, TransferConversionError
from ..fx import CurrencyConverter
from ..models import Activity, ActivityType, EntityDefinition, sort_activities
from ..schemas.updates import (
    RawAssetEvents,
    RawSnapshotEvent,
    RawTransfer,
    RawUpdateRecord,
)

logger = logging.getLogger(__name__)

CurrencyResolver = Callable[[str], Awaitable[Optional[str]]]


class ActivityExtractor:
    """Build the chronologically ordered ledger of a single entity."""

    def __init__(self, converter: CurrencyConverter, resolve_currency: CurrencyResolver):
        self._converter = converter
        self._resolve_currency = resolve_currency

    async def extract(
        self,
        entity: EntityDefinition,
        records: Sequence[RawUpdateRecord],
    ) -> List[Activity]:
        """Return the entity's activities, newest first."""

        full_name = entity.full_name
        sequence = itertools.count(1)
        activities: List[Activity] = []

        for record in records:
            for entry in record.asset_events:
                if entry.entity_name != full_name:
                    continue
                activities.extend(self._event_activities(entity, record, entry, sequence))

            for transfer in record.transfers:
                transfer_date = transfer.date or record.date
                if transfer.from_entity == full_name:
                    activities.append(
                        await self._transfer_activity(
                            entity, transfer, transfer_date, outgoing=True, seq=next(sequence)
                        )
                    )
                if transfer.to_entity == full_name:
                    activities.append(
                        await self._transfer_activity(
                            entity, transfer, transfer_date, outgoing=False, seq=next(sequence)
                        )
                    )

        return sort_activities(activities)

    def _event_activities(
        self,
        entity: EntityDefinition,
        record: RawUpdateRecord,
        entry: RawAssetEvents,
        sequence: Iterator[int],
    ) -> Iterator[Activity]:
        entry_date = entry.date or record.date
        for event in entry.events:
            event_date = event.date or entry_date
            if isinstance(event, RawSnapshotEvent):
                yield self._snapshot_activity(entity, event, event_date, next(sequence))
                continue
            activity_type = ActivityType(event.type)
            amount = event.amount if event.amount is not None else 0.0
            yield Activity(
                id=_activity_id(entity, activity_type, next(sequence)),
                type=activity_type,
                amount=amount,
                total_value=amount,
                date=event_date,
                description=event.description,
            )

    def _snapshot_activity(
        self,
        entity: EntityDefinition,
        event: RawSnapshotEvent,
        event_date: date,
        seq: int,
    ) -> Activity:
        value = event.snapshot_value()
        amount: Optional[float] = value
        unit_price: Optional[float] = None
        if entity.is_stock and event.shares is not None:
            amount = event.shares
            unit_price = event.price
        return Activity(
            id=_activity_id(entity, ActivityType.SNAPSHOT, seq),
            type=ActivityType.SNAPSHOT,
            amount=amount,
            unit_price=unit_price,
            total_value=value,
            date=event_date,
            description=event.description,
        )

    async def _transfer_activity(
        self,
        entity: EntityDefinition,
        transfer: RawTransfer,
        transfer_date: date,
        *,
        outgoing: bool,
        seq: int,
    ) -> Activity:
        counterparty = transfer.to_entity if outgoing else transfer.from_entity
        total_value = transfer.resolved_total_value()
        rate: Optional[float] = None

        if entity.is_stock:
            activity_type = ActivityType.SELL if outgoing else ActivityType.BUY
        else:
            activity_type = ActivityType.TRANSFER_OUT if outgoing else ActivityType.TRANSFER_IN
            try:
                total_value, rate = await self._convert_transfer_value(
                    entity, counterparty, total_value, transfer_date
                )
            except TransferConversionError as exc:
                logger.warning("Using unconverted transfer value for %s: %s", entity.full_name, exc)

        return Activity(
            id=_activity_id(entity, activity_type, seq),
            type=activity_type,
            amount=transfer.amount,
            unit_price=transfer.unit_price,
            total_value=total_value,
            date=transfer_date,
            description=transfer.description,
            related_entity=counterparty,
            exchange_rate_used=rate,
        )

    async def _convert_transfer_value(
        self,
        entity: EntityDefinition,
        counterparty: str,
        value: float,
        on: date,
    ) -> Tuple[float, Optional[float]]:
        """Convert ``value`` from the counterparty's currency into the entity's."""

        base = self._converter.base_currency
        own_currency = entity.currency_or(base)
        try:
            counter_currency = await self._resolve_currency(counterparty) or base
        except Exception as exc:
            raise TransferConversionError(
                f"cannot resolve currency of {counterparty} on {on.isoformat()}: {exc!r}"
            ) from exc
        if counter_currency == own_currency:
            return value, None
        try:
            rate = self._converter.cross_rate(counter_currency, own_currency, on)
        except PortfolioError as exc:
            raise TransferConversionError(
                f"cannot convert transfer with {counterparty} on {on.isoformat()}: {exc}"
            ) from exc
        return value * rate, rate


def _activity_id(entity: EntityDefinition, activity_type: ActivityType, seq: int) -> str:
    return f"{entity.full_name}-{activity_type.slug}-{seq}"


__all__ = ["ActivityExtractor", "CurrencyResolver"]
