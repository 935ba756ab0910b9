"""Derived views over the ledger: filters and aggregations."""

from expense_ledger.queries.aggregator import (
    aggregate_by_month,
    category_totals,
    entries_in_month,
)
from expense_ledger.queries.filters import (
    LedgerView,
    filter_by_date_range,
    filter_by_payment_method,
    sort_by_amount,
    to_day,
)

__all__ = [
    "LedgerView",
    "aggregate_by_month",
    "category_totals",
    "entries_in_month",
    "filter_by_date_range",
    "filter_by_payment_method",
    "sort_by_amount",
    "to_day",
]
