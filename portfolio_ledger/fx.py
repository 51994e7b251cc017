"""FX conversion helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import MissingExchangeRate
from .schemas.updates import RawUpdateRecord


@dataclass(frozen=True)
class RatePoint:
    """A rate into the base currency recorded on a given date."""

    date: date
    rate: float


class ExchangeRateTable:
    """Date-sorted rate series for one currency."""

    def __init__(self, currency: str, points: Iterable[RatePoint]):
        self.currency = currency
        # sorted() is stable, so same-day rates keep their recorded order
        self._points: Tuple[RatePoint, ...] = tuple(sorted(points, key=lambda p: p.date))

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> Tuple[RatePoint, ...]:
        return self._points

    def find_nearest(self, target: date) -> Optional[float]:
        """Return the rate recorded closest to ``target``.

        On equal distance the earlier entry of the ascending scan wins.
        """

        closest: Optional[RatePoint] = None
        min_diff: Optional[int] = None
        for point in self._points:
            diff = abs((target - point.date).days)
            if min_diff is None or diff < min_diff:
                min_diff = diff
                closest = point
        return closest.rate if closest is not None else None


def build_rate_tables(records: Iterable[RawUpdateRecord]) -> Dict[str, ExchangeRateTable]:
    """Pool the rates of every update record into one table per currency."""

    pooled: Dict[str, List[RatePoint]] = {}
    for record in records:
        for raw in record.exchange_rates:
            point = RatePoint(date=raw.date or record.date, rate=raw.rate)
            pooled.setdefault(raw.from_currency, []).append(point)
    return {currency: ExchangeRateTable(currency, points) for currency, points in pooled.items()}


@dataclass
class CurrencyConverter:
    """Convert amounts between currencies through the base currency."""

    tables: Dict[str, ExchangeRateTable] = field(default_factory=dict)
    base_currency: str = "CNY"

    @classmethod
    def from_records(cls, records: Iterable[RawUpdateRecord], base_currency: str) -> "CurrencyConverter":
        return cls(tables=build_rate_tables(records), base_currency=base_currency)

    def is_base(self, currency: str | None) -> bool:
        return not currency or currency == self.base_currency

    def rate_to_base(self, currency: str, on: date) -> float:
        """Return the multiplier taking ``currency`` into the base currency."""

        if self.is_base(currency):
            return 1.0
        table = self.tables.get(currency)
        rate = table.find_nearest(on) if table is not None else None
        if rate is None:
            raise MissingExchangeRate(currency, on)
        return rate

    def to_base(self, value: float, currency: str, on: date) -> float:
        return value * self.rate_to_base(currency, on)

    def cross_rate(self, from_currency: str, to_currency: str, on: date) -> float:
        """Return the multiplier taking ``from_currency`` into ``to_currency``."""

        if from_currency == to_currency:
            return 1.0
        return self.rate_to_base(from_currency, on) / self.rate_to_base(to_currency, on)

    def convert(self, value: float, from_currency: str, to_currency: str, on: date) -> float:
        return value * self.cross_rate(from_currency, to_currency, on)


__all__ = [
    "RatePoint",
    "ExchangeRateTable",
    "build_rate_tables",
    "CurrencyConverter",
]
