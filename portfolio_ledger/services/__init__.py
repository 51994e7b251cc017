"""Valuation services: ledger extraction, valuation and aggregation."""
