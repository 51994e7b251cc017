from __future__ import annotations

from conftest import build_service, snapshot
from portfolio_ledger.models import EntityDefinition, EntityKind
from portfolio_ledger.services.categories import select_by_tags, select_excluding_tags

PORTFOLIO = {
    "assets": [
        {"name": "Gold", "type": "simple", "tags": ["hedge", " "]},
        {"name": "Index", "type": "investment", "tags": ["equity", "long-term"]},
    ],
    "accounts": [
        {
            "name": "Bank",
            "type": "bank",
            "assets": [
                {"name": "Current", "type": "simple", "tags": ["cash"]},
                {"name": "Deposit", "type": "simple", "tags": ["cash", "long-term"]},
            ],
        }
    ],
}

UPDATES = [
    {
        "date": "2024-01-31",
        "assets": [
            snapshot("Gold", 100),
            snapshot("Index", 200),
            snapshot("Bank.Current", 10),
            snapshot("Bank.Deposit", 20),
        ],
    },
    {"date": "2024-02-29", "assets": [snapshot("Index", 260)]},
]

CATEGORIES = {
    "categoryTypes": [
        {
            "name": "Liquidity",
            "categories": [
                {"name": "Cash", "tags": ["cash"], "targetValue": 50},
                {"name": "Locked", "tags": ["long-term"]},
            ],
        },
        {
            "name": "Risk",
            "excludeTags": ["cash"],
            "categories": [{"name": "Everything"}],
        },
    ]
}


def test_all_tags_include_virtual_tags():
    deposit = EntityDefinition(
        name="Deposit", kind=EntityKind.SIMPLE, account="Bank", tags=("cash", " ", "long-term")
    )

    assert deposit.user_tags == ["cash", "long-term"]
    assert deposit.virtual_tags == ["Bank.Deposit", "Bank"]
    assert deposit.all_tags == ["Bank", "Bank.Deposit", "cash", "long-term"]


async def test_select_by_and_excluding_tags():
    service = build_service(PORTFOLIO, UPDATES)
    handles = await service.list_entities()

    assert [h.full_name for h in select_by_tags(handles, ["cash"])] == ["Bank.Current", "Bank.Deposit"]
    assert [h.full_name for h in select_by_tags(handles, ["Bank", "hedge"])] == [
        "Gold",
        "Bank.Current",
        "Bank.Deposit",
    ]
    assert [h.full_name for h in select_by_tags(handles, ["Index"])] == ["Index"]
    assert [h.full_name for h in select_excluding_tags(handles, ["long-term"])] == ["Gold", "Bank.Current"]
    assert select_by_tags(handles, []) == []


async def test_category_tree_partitions_entities():
    service = build_service(PORTFOLIO, UPDATES, CATEGORIES)
    liquidity, risk = await service.categories()

    cash, locked = liquidity.sub_categories()
    assert [h.full_name for h in liquidity.entities()] == ["Gold", "Index", "Bank.Current", "Bank.Deposit"]
    assert [h.full_name for h in liquidity.standalone_entities()] == ["Gold"]
    assert [h.full_name for h in cash.entities()] == ["Bank.Current", "Bank.Deposit"]
    assert [h.full_name for h in locked.entities()] == ["Index", "Bank.Deposit"]
    assert cash.target_value == 50
    assert locked.target_value is None

    assert [h.full_name for h in risk.entities()] == ["Gold", "Index"]
    assert risk.standalone_entities() == []
    (everything,) = risk.sub_categories()
    assert [h.full_name for h in everything.entities()] == ["Gold", "Index"]


async def test_category_values_roll_up_sub_categories():
    service = build_service(PORTFOLIO, UPDATES, CATEGORIES)
    liquidity, risk = await service.categories()
    cash, _ = liquidity.sub_categories()

    assert (await cash.current_value()).amount_in_base == 30
    assert (await risk.current_value()).amount_in_base == 360

    history = await risk.value_history()
    assert [record.current_value.amount_in_base for record in history] == [300, 360]


async def test_empty_tag_list_child_does_not_claim_everything():
    categories = {
        "categoryTypes": [
            {"name": "Explicit", "categories": [{"name": "Empty", "tags": []}, {"name": "Cash", "tags": ["cash"]}]},
            {"name": "Implicit", "categories": [{"name": "Anything"}]},
        ]
    }
    service = build_service(PORTFOLIO, UPDATES, categories)
    explicit, implicit = await service.categories()

    empty, _ = explicit.sub_categories()
    assert [h.full_name for h in explicit.standalone_entities()] == ["Gold", "Index"]
    assert [h.full_name for h in empty.entities()] == ["Gold", "Index", "Bank.Current", "Bank.Deposit"]
    assert implicit.standalone_entities() == []
