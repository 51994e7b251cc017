import asyncio
import inspect
import pathlib
import sys
from datetime import date
from typing import Any

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_ledger import InMemoryPortfolioStore, PortfolioValuationService  # noqa: E402

TODAY = date(2024, 6, 30)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            arguments = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
            loop.run_until_complete(test_function(**arguments))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


def build_service(
    portfolio: dict[str, Any],
    updates: list[dict[str, Any]],
    categories: dict[str, Any] | None = None,
    *,
    base_currency: str = "CNY",
) -> PortfolioValuationService:
    store = InMemoryPortfolioStore.from_payloads(portfolio=portfolio, updates=updates, categories=categories)
    return PortfolioValuationService(store, base_currency=base_currency, clock=lambda: TODAY)


def snapshot(name: str, value: float, **extra: Any) -> dict[str, Any]:
    return {"name": name, "events": [{"type": "snapshot", "currentValue": value, **extra}]}
