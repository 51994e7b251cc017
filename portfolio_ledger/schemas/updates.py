"""Pydantic schemas for raw portfolio update records.

Update files are append-only JSON documents. They are validated here, at the
boundary, so the rest of the engine only sees well-formed, immutable records.
Field aliases follow the JSON spelling used in the files (``currentValue``,
``unitPrice``, ``from``...); Python attribute names are accepted as well.
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Iterable, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..errors import InvalidPortfolioData


class _RawModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class RawSnapshotEvent(_RawModel):
    type: Literal["snapshot"]
    current_value: float | None = Field(default=None, alias="currentValue")
    shares: float | None = None
    price: float | None = None
    description: str | None = None
    date: dt.date | None = None

    def snapshot_value(self) -> float:
        """Return ``currentValue``, else ``shares * price``, else 0."""

        if self.current_value is not None:
            return self.current_value
        if self.shares is not None and self.price is not None:
            return self.shares * self.price
        return 0.0


class RawIncomeEvent(_RawModel):
    type: Literal["income"]
    amount: float | None = None
    description: str | None = None
    date: dt.date | None = None


class RawExpenseEvent(_RawModel):
    type: Literal["expense"]
    amount: float | None = None
    description: str | None = None
    date: dt.date | None = None


RawEvent = Annotated[
    Union[RawSnapshotEvent, RawIncomeEvent, RawExpenseEvent],
    Field(discriminator="type"),
]


class RawAssetEvents(_RawModel):
    entity_name: str = Field(validation_alias=AliasChoices("name", "entityName", "entity_name"))
    date: dt.date | None = None
    events: tuple[RawEvent, ...] = ()


class RawTransfer(_RawModel):
    from_entity: str = Field(validation_alias=AliasChoices("from", "from_entity"))
    to_entity: str = Field(validation_alias=AliasChoices("to", "to_entity"))
    amount: float | None = None
    unit_price: float | None = Field(default=None, alias="unitPrice")
    total_value: float | None = Field(default=None, alias="totalValue")
    description: str | None = None
    date: dt.date | None = None

    def resolved_total_value(self) -> float:
        """Explicit total, else ``amount * unitPrice``, else ``amount``, else 0."""

        if self.total_value is not None:
            return self.total_value
        if self.amount is not None and self.unit_price is not None:
            return self.amount * self.unit_price
        if self.amount is not None:
            return self.amount
        return 0.0


class RawRate(_RawModel):
    from_currency: str = Field(validation_alias=AliasChoices("from", "fromCurrency", "from_currency"))
    rate: float
    date: dt.date | None = None


class RawUpdateRecord(_RawModel):
    date: dt.date
    asset_events: tuple[RawAssetEvents, ...] = Field(
        default=(),
        validation_alias=AliasChoices("assets", "assetEvents", "asset_events"),
    )
    transfers: tuple[RawTransfer, ...] = ()
    exchange_rates: tuple[RawRate, ...] = Field(
        default=(),
        validation_alias=AliasChoices("exchangeRates", "exchange_rates"),
    )


_RECORDS_ADAPTER = TypeAdapter(list[RawUpdateRecord])


def parse_update_records(payloads: Iterable[Any]) -> list[RawUpdateRecord]:
    """Validate raw JSON payloads, keeping their order."""

    try:
        return _RECORDS_ADAPTER.validate_python(list(payloads))
    except ValidationError as exc:
        raise InvalidPortfolioData(f"Invalid portfolio update data: {exc}") from exc


__all__ = [
    "RawSnapshotEvent",
    "RawIncomeEvent",
    "RawExpenseEvent",
    "RawEvent",
    "RawAssetEvents",
    "RawTransfer",
    "RawRate",
    "RawUpdateRecord",
    "parse_update_records",
]
