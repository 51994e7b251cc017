"""Single-entity valuation from an activity ledger."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..errors import MissingExchangeRate
from ..fx import CurrencyConverter
from ..models import (
    INFLOW_TYPES,
    Activity,
    ActivityStatistics,
    ActivityType,
    CurrentValue,
    DailyRecord,
    EntityDefinition,
)

DEFAULT_RECENT_INCOME_DAYS = 30


class ValueCalculator:
    """Reduce a date-descending ledger into current and historical values."""

    def __init__(self, converter: CurrencyConverter, *, clock: Callable[[], date] = date.today):
        self._converter = converter
        self._clock = clock

    @property
    def base_currency(self) -> str:
        return self._converter.base_currency

    def current_value(
        self,
        entity: EntityDefinition,
        activities: Sequence[Activity],
        *,
        today: date | None = None,
    ) -> CurrentValue:
        """Value the entity from its most recent snapshot.

        Without a snapshot the amount is zero, valued at ``today``. A foreign
        currency without any recorded rate raises :class:`MissingExchangeRate`.
        """

        snapshot = latest_snapshot(activities)
        if snapshot is None:
            return self._valued(entity, 0.0, today or self._clock(), None)
        return self._valued(entity, snapshot.total_value, snapshot.date, snapshot.date)

    def value_history(
        self,
        entity: EntityDefinition,
        activities: Sequence[Activity],
    ) -> List[DailyRecord]:
        """Return one record per distinct snapshot date, oldest first."""

        by_date: Dict[date, List[Activity]] = {}
        for activity in activities:
            by_date.setdefault(activity.date, []).append(activity)

        history: List[DailyRecord] = []
        for day in sorted(by_date):
            day_activities = by_date[day]
            snapshot = latest_snapshot(day_activities)
            if snapshot is None:
                continue
            history.append(
                DailyRecord(
                    date=day,
                    current_value=self._valued(entity, snapshot.total_value, day, day),
                    activities=list(day_activities),
                )
            )
        return history

    def recent_income(
        self,
        activities: Iterable[Activity],
        *,
        now: date | None = None,
        window_days: int = DEFAULT_RECENT_INCOME_DAYS,
    ) -> float:
        """Sum inflows dated within the last ``window_days``."""

        cutoff = (now or self._clock()) - timedelta(days=window_days)
        return sum(
            activity.total_value
            for activity in activities
            if activity.type in INFLOW_TYPES and activity.date >= cutoff
        )

    def _valued(
        self,
        entity: EntityDefinition,
        amount: float,
        on: date,
        last_update: Optional[date],
    ) -> CurrentValue:
        currency = entity.currency_or(self.base_currency)
        try:
            amount_in_base = self._converter.to_base(amount, currency, on)
        except MissingExchangeRate as exc:
            raise exc.with_entity(entity.full_name) from exc
        return CurrentValue(
            amount=amount,
            currency=currency,
            amount_in_base=amount_in_base,
            last_update_date=last_update,
        )


def latest_snapshot(activities: Iterable[Activity]) -> Optional[Activity]:
    """Return the first snapshot of a date-descending ledger."""

    for activity in activities:
        if activity.type == ActivityType.SNAPSHOT:
            return activity
    return None


def activity_statistics(activities: Sequence[Activity]) -> ActivityStatistics:
    """Summarise the cash flows of a ledger. Snapshots do not move net flow."""

    totals = {activity_type: 0.0 for activity_type in ActivityType}
    snapshots = 0
    for activity in activities:
        if activity.type == ActivityType.SNAPSHOT:
            snapshots += 1
        else:
            totals[activity.type] += activity.total_value

    inflow = sum(totals[t] for t in INFLOW_TYPES)
    outflow = totals[ActivityType.EXPENSE] + totals[ActivityType.TRANSFER_OUT] + totals[ActivityType.SELL]
    return ActivityStatistics(
        total_income=totals[ActivityType.INCOME],
        total_expenses=totals[ActivityType.EXPENSE],
        total_transfer_in=totals[ActivityType.TRANSFER_IN],
        total_transfer_out=totals[ActivityType.TRANSFER_OUT],
        total_buys=totals[ActivityType.BUY],
        total_sells=totals[ActivityType.SELL],
        total_snapshots=snapshots,
        net_flow=inflow - outflow,
        activity_count=len(activities),
    )


def activities_between(activities: Iterable[Activity], start: date, end: date) -> List[Activity]:
    return [activity for activity in activities if start <= activity.date <= end]


def activities_of_type(activities: Iterable[Activity], activity_type: ActivityType) -> List[Activity]:
    return [activity for activity in activities if activity.type == activity_type]


__all__ = [
    "DEFAULT_RECENT_INCOME_DAYS",
    "ValueCalculator",
    "latest_snapshot",
    "activity_statistics",
    "activities_between",
    "activities_of_type",
]
