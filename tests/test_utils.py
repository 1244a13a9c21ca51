"""Shared test utilities for building transaction records.

This module provides a record factory used across the test files so each
test only spells out the fields it cares about.
"""

from datetime import date, time
from decimal import Decimal

from retail_core.records import TransactionRecord


def make_record(**overrides) -> TransactionRecord:
    """Build a TransactionRecord with sensible defaults.

    unit_price and quantity default so that total == unit_price * quantity;
    pass total explicitly when a test needs a specific revenue figure.
    """
    fields = {
        "branch": "WALM001",
        "city": "San Antonio",
        "category": "Health and beauty",
        "unit_price": Decimal("10.00"),
        "quantity": 1,
        "payment_method": "Cash",
        "rating": Decimal("7.0"),
        "profit_margin": Decimal("0.48"),
        "transaction_date": date(2023, 1, 5),
        "transaction_time": time(13, 8),
    }
    fields.update(overrides)
    if "total" not in fields:
        fields["total"] = fields["unit_price"] * fields["quantity"]
    return TransactionRecord(**fields)
