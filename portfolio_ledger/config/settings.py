"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_BASE_CURRENCY = "CNY"
DEFAULT_RECENT_INCOME_WINDOW_DAYS = 30


class LedgerSettings(BaseSettings):
    """Configuration options for the portfolio ledger."""

    app_name: str = Field(default="Portfolio Ledger")
    base_currency: str = Field(
        default=DEFAULT_BASE_CURRENCY,
        description="Reporting currency every total is expressed in.",
    )
    recent_income_window_days: int = Field(
        default=DEFAULT_RECENT_INCOME_WINDOW_DAYS,
        ge=1,
        description="Look-back window for the recent income of simple assets.",
    )
    log_level: str = Field(default="INFO")

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="portfolio-ledger")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)
    telemetry_console_export: bool = Field(
        default=False,
        description="Print spans to stdout instead of exporting over OTLP.",
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"telemetry_otlp_endpoint"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> LedgerSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return LedgerSettings(**overrides)
    return LedgerSettings()


__all__ = [
    "LedgerSettings",
    "DEFAULT_BASE_CURRENCY",
    "DEFAULT_RECENT_INCOME_WINDOW_DAYS",
    "get_settings",
]
