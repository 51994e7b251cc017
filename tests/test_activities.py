from __future__ import annotations

import logging
from datetime import date

import pytest

from conftest import build_service, snapshot
from portfolio_ledger.fx import CurrencyConverter
from portfolio_ledger.models import ActivityType, EntityDefinition, EntityKind
from portfolio_ledger.schemas import parse_update_records
from portfolio_ledger.services.activities import ActivityExtractor

PORTFOLIO = {
    "assets": [
        {"name": "Cash", "type": "simple"},
        {"name": "Fund", "type": "investment", "currency": "USD"},
        {"name": "AAPL", "type": "stock", "currency": "USD"},
    ],
    "accounts": [
        {"name": "Bank", "type": "bank", "assets": [{"name": "Cash", "type": "simple", "tags": ["活期"]}]},
        {"name": "Broker", "type": "broker", "assets": [{"name": "USD", "type": "simple", "currency": "USD"}]},
    ],
}

CASH = EntityDefinition(name="Cash", kind=EntityKind.SIMPLE)
BANK_CASH = EntityDefinition(name="Cash", kind=EntityKind.SIMPLE, account="Bank", tags=("活期",))
FUND = EntityDefinition(name="Fund", kind=EntityKind.INVESTMENT, currency="USD")
AAPL = EntityDefinition(name="AAPL", kind=EntityKind.STOCK, currency="USD")
BROKER_USD = EntityDefinition(name="USD", kind=EntityKind.SIMPLE, currency="USD", account="Broker")


async def test_ledger_is_sorted_newest_first_with_id_tiebreak():
    updates = [
        {"date": "2024-01-31", "assets": [snapshot("Cash", 100)]},
        {
            "date": "2024-02-29",
            "assets": [
                {
                    "name": "Cash",
                    "events": [
                        {"type": "income", "amount": 5},
                        {"type": "expense", "amount": 3, "date": "2024-02-10"},
                        {"type": "snapshot", "currentValue": 102},
                    ],
                }
            ],
        },
    ]
    ledger = await build_service(PORTFOLIO, updates).get_activity_ledger(CASH)

    assert [(a.date, a.id) for a in ledger] == [
        (date(2024, 2, 29), "Cash-income-2"),
        (date(2024, 2, 29), "Cash-snapshot-4"),
        (date(2024, 2, 10), "Cash-expense-3"),
        (date(2024, 1, 31), "Cash-snapshot-1"),
    ]


async def test_same_day_ids_compare_as_strings():
    events = [{"type": "income", "amount": n} for n in range(1, 11)]
    updates = [{"date": "2024-01-31", "assets": [{"name": "Cash", "events": events}]}]
    ledger = await build_service(PORTFOLIO, updates).get_activity_ledger(CASH)

    assert [a.id for a in ledger][:3] == ["Cash-income-1", "Cash-income-10", "Cash-income-2"]
    assert ledger[1].total_value == 10


async def test_matching_uses_full_name():
    updates = [
        {
            "date": "2024-01-31",
            "assets": [snapshot("Cash", 100), snapshot("Bank.Cash", 900)],
            "transfers": [{"from": "Bank.Cash", "to": "Cash", "amount": 50}],
        }
    ]
    service = build_service(PORTFOLIO, updates)

    standalone = await service.get_activity_ledger(CASH)
    in_account = await service.get_activity_ledger(BANK_CASH)

    assert {(a.type, a.total_value) for a in standalone} == {
        (ActivityType.SNAPSHOT, 100),
        (ActivityType.TRANSFER_IN, 50),
    }
    assert {(a.type, a.total_value) for a in in_account} == {
        (ActivityType.SNAPSHOT, 900),
        (ActivityType.TRANSFER_OUT, 50),
    }
    transfer_out = next(a for a in in_account if a.type == ActivityType.TRANSFER_OUT)
    assert transfer_out.id == "Bank.Cash-transfer-out-2"
    assert transfer_out.related_entity == "Cash"
    assert transfer_out.exchange_rate_used is None


async def test_effective_date_falls_back_from_event_to_entry_to_record():
    updates = [
        {
            "date": "2024-01-31",
            "assets": [
                {
                    "name": "Cash",
                    "date": "2024-01-20",
                    "events": [
                        {"type": "income", "amount": 1, "date": "2024-01-05"},
                        {"type": "income", "amount": 2},
                    ],
                },
            ],
            "transfers": [
                {"from": "Cash", "to": "Bank.Cash", "amount": 3},
                {"from": "Cash", "to": "Bank.Cash", "amount": 4, "date": "2024-01-25"},
            ],
        }
    ]
    ledger = await build_service(PORTFOLIO, updates).get_activity_ledger(CASH)

    assert {a.total_value: a.date for a in ledger} == {
        1: date(2024, 1, 5),
        2: date(2024, 1, 20),
        3: date(2024, 1, 31),
        4: date(2024, 1, 25),
    }


async def test_snapshot_value_fallbacks():
    updates = [
        {
            "date": "2024-01-31",
            "assets": [
                {
                    "name": "Cash",
                    "events": [
                        {"type": "snapshot", "currentValue": 10, "shares": 3, "price": 4, "date": "2024-01-01"},
                        {"type": "snapshot", "shares": 3, "price": 4, "date": "2024-01-02"},
                        {"type": "snapshot", "shares": 3, "date": "2024-01-03"},
                    ],
                }
            ],
        }
    ]
    ledger = await build_service(PORTFOLIO, updates).get_activity_ledger(CASH)

    by_date = {a.date: a for a in ledger}
    assert by_date[date(2024, 1, 1)].total_value == 10
    assert by_date[date(2024, 1, 2)].total_value == 12
    assert by_date[date(2024, 1, 2)].amount == 12
    assert by_date[date(2024, 1, 2)].unit_price is None
    assert by_date[date(2024, 1, 3)].total_value == 0


async def test_stock_snapshot_carries_share_count():
    updates = [
        {
            "date": "2024-01-31",
            "assets": [{"name": "AAPL", "events": [{"type": "snapshot", "shares": 10, "price": 150}]}],
            "exchangeRates": [{"from": "USD", "rate": 7.0}],
        }
    ]
    (activity,) = await build_service(PORTFOLIO, updates).get_activity_ledger(AAPL)

    assert activity.type == ActivityType.SNAPSHOT
    assert activity.amount == 10
    assert activity.unit_price == 150
    assert activity.total_value == 1500


async def test_transfer_total_value_precedence():
    transfers = [
        {"from": "Cash", "to": "Bank.Cash", "amount": 2, "unitPrice": 3, "totalValue": 100},
        {"from": "Cash", "to": "Bank.Cash", "amount": 2, "unitPrice": 3},
        {"from": "Cash", "to": "Bank.Cash", "amount": 2},
        {"from": "Cash", "to": "Bank.Cash"},
    ]
    updates = [{"date": "2024-01-31", "transfers": transfers}]
    ledger = await build_service(PORTFOLIO, updates).get_activity_ledger(CASH)

    assert [a.total_value for a in sorted(ledger, key=lambda a: int(a.id.rsplit("-", 1)[1]))] == [100, 6, 2, 0]
    assert all(a.type == ActivityType.TRANSFER_OUT for a in ledger)
    assert all(a.description is None for a in ledger)


async def test_stock_buy_is_not_currency_converted():
    updates = [
        {
            "date": "2024-03-01",
            "transfers": [
                {"from": "Cash", "to": "AAPL", "amount": 100, "unitPrice": 50, "description": "buy AAPL"}
            ],
            "exchangeRates": [{"from": "USD", "rate": 7.0}],
        }
    ]
    service = build_service(PORTFOLIO, updates)

    (buy,) = await service.get_activity_ledger(AAPL)
    assert buy.type == ActivityType.BUY
    assert buy.amount == 100
    assert buy.unit_price == 50
    assert buy.total_value == 5000
    assert buy.exchange_rate_used is None
    assert buy.related_entity == "Cash"
    assert buy.description == "buy AAPL"

    (paid,) = await service.get_activity_ledger(CASH)
    assert paid.type == ActivityType.TRANSFER_OUT
    assert paid.exchange_rate_used == pytest.approx(7.0)
    assert paid.total_value == pytest.approx(35000)


async def test_stock_sell_when_transfer_leaves_stock():
    updates = [{"date": "2024-03-01", "transfers": [{"from": "AAPL", "to": "Fund", "amount": 5, "unitPrice": 60}]}]
    (sell,) = await build_service(PORTFOLIO, updates).get_activity_ledger(AAPL)

    assert sell.type == ActivityType.SELL
    assert sell.total_value == 300
    assert sell.id == "AAPL-sell-1"


async def test_transfers_convert_from_counterparty_currency():
    updates = [
        {
            "date": "2024-03-01",
            "transfers": [{"from": "Broker.USD", "to": "Cash", "totalValue": 100}],
            "exchangeRates": [
                {"from": "USD", "rate": 7.0, "date": "2024-01-01"},
                {"from": "USD", "rate": 7.2, "date": "2024-03-02"},
            ],
        }
    ]
    service = build_service(PORTFOLIO, updates)

    (incoming,) = await service.get_activity_ledger(CASH)
    assert incoming.type == ActivityType.TRANSFER_IN
    assert incoming.exchange_rate_used == pytest.approx(7.2)
    assert incoming.total_value == pytest.approx(720)

    (outgoing,) = await service.get_activity_ledger(BROKER_USD)
    assert outgoing.type == ActivityType.TRANSFER_OUT
    assert outgoing.related_entity == "Cash"
    assert outgoing.exchange_rate_used == pytest.approx(1 / 7.2)
    assert outgoing.total_value == pytest.approx(100 / 7.2)


async def test_conversion_failures_fall_back_to_raw_value(caplog):
    updates = [
        {
            "date": "2024-03-01",
            "transfers": [
                {"from": "Nowhere.Account", "to": "Cash", "amount": 50},
                {"from": "Fund", "to": "Cash", "amount": 70},
            ],
        }
    ]
    with caplog.at_level(logging.WARNING, logger="portfolio_ledger.services.activities"):
        ledger = await build_service(PORTFOLIO, updates).get_activity_ledger(CASH)

    assert sorted(a.total_value for a in ledger) == [50, 70]
    assert all(a.exchange_rate_used is None for a in ledger)
    assert "Nowhere.Account" in caplog.text
    assert "USD" in caplog.text


async def test_resolver_failures_of_any_kind_keep_raw_value(caplog):
    async def unreachable_store(full_name: str):
        raise OSError(f"portfolio file for {full_name} is unreadable")

    records = parse_update_records([{"date": "2024-03-01", "transfers": [{"from": "Savings", "to": "Cash", "amount": 80}]}])
    extractor = ActivityExtractor(CurrencyConverter(base_currency="CNY"), unreachable_store)

    with caplog.at_level(logging.WARNING, logger="portfolio_ledger.services.activities"):
        (activity,) = await extractor.extract(CASH, records)

    assert activity.type == ActivityType.TRANSFER_IN
    assert activity.total_value == 80
    assert activity.exchange_rate_used is None
    assert "OSError" in caplog.text
