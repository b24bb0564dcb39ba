"""Demo seed data package."""

from petty_cash.demo.seed_data import (
    BLACKLISTED_PROVIDERS,
    blacklisted_providers,
    demo_expenses,
)

__all__ = ["BLACKLISTED_PROVIDERS", "blacklisted_providers", "demo_expenses"]
