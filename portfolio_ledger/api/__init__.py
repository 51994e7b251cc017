"""Read-only HTTP surface over the valuation engine."""
