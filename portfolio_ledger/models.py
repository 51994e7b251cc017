"""Domain models produced and consumed by the valuation engine."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional, Sequence


class EntityKind(str, Enum):
    SIMPLE = "simple"
    INVESTMENT = "investment"
    COMPOSITE = "composite"
    STOCK = "stock"


class ActivityType(str, Enum):
    SNAPSHOT = "snapshot"
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    BUY = "buy"
    SELL = "sell"

    @property
    def slug(self) -> str:
        """Hyphenated form used inside activity ids."""

        return self.value.replace("_", "-")


INFLOW_TYPES = frozenset({ActivityType.INCOME, ActivityType.TRANSFER_IN, ActivityType.BUY})


@dataclass(frozen=True)
class EntityDefinition:
    """An asset defined in the portfolio, standalone or inside an account."""

    name: str
    kind: EntityKind
    currency: Optional[str] = None
    tags: Sequence[str] = ()
    account: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Identity used to match events and transfers in update records."""

        if self.account:
            return f"{self.account}.{self.name}"
        return self.name

    @property
    def is_stock(self) -> bool:
        return self.kind == EntityKind.STOCK

    def currency_or(self, base_currency: str) -> str:
        return self.currency or base_currency

    @property
    def user_tags(self) -> list[str]:
        return [tag.strip() for tag in self.tags if tag and tag.strip()]

    @property
    def virtual_tags(self) -> list[str]:
        tags = [self.full_name]
        if self.account:
            tags.append(self.account)
        return tags

    @property
    def all_tags(self) -> list[str]:
        return sorted(set(self.user_tags) | set(self.virtual_tags))


@dataclass(frozen=True)
class Activity:
    """A normalized ledger entry for a single entity."""

    id: str
    type: ActivityType
    total_value: float
    date: date
    amount: Optional[float] = None
    description: Optional[str] = None
    related_entity: Optional[str] = None
    unit_price: Optional[float] = None
    exchange_rate_used: Optional[float] = None

    def sort_key(self) -> tuple[int, str]:
        """Date descending, then id ascending."""

        return (-self.date.toordinal(), self.id)

    def tagged_with(self, full_name: str) -> "Activity":
        """Return a copy whose id and description name the owning entity."""

        label = f"[{full_name}]"
        description = f"{label} {self.description}" if self.description else label
        return replace(self, id=f"{full_name}-{self.id}", description=description)


@dataclass(frozen=True)
class CurrentValue:
    """Point-in-time value in native and base currency."""

    amount: float
    currency: str
    amount_in_base: float
    last_update_date: Optional[date] = None


@dataclass(frozen=True)
class DailyRecord:
    """Value and activities for one date of a history."""

    date: date
    current_value: CurrentValue
    activities: list[Activity] = field(default_factory=list)


@dataclass(frozen=True)
class ActivityStatistics:
    total_income: float = 0.0
    total_expenses: float = 0.0
    total_transfer_in: float = 0.0
    total_transfer_out: float = 0.0
    total_buys: float = 0.0
    total_sells: float = 0.0
    total_snapshots: int = 0
    net_flow: float = 0.0
    activity_count: int = 0


@dataclass(frozen=True)
class EntitySummary:
    """Definition, valuation and ledger of one entity."""

    definition: EntityDefinition
    current_value: CurrentValue
    activities: list[Activity]
    recent_income: Optional[float] = None


def sort_activities(activities: Sequence[Activity]) -> list[Activity]:
    """Return activities ordered by date descending with id tie-break."""

    return sorted(activities, key=Activity.sort_key)


__all__ = [
    "EntityKind",
    "ActivityType",
    "INFLOW_TYPES",
    "EntityDefinition",
    "Activity",
    "CurrentValue",
    "DailyRecord",
    "ActivityStatistics",
    "EntitySummary",
    "sort_activities",
]
