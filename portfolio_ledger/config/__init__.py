"""Configuration package for the portfolio ledger."""

from .settings import LedgerSettings, get_settings

__all__ = ["LedgerSettings", "get_settings"]
