"""
Monthly Category Aggregation

DESIGN DECISION: Aggregation is DETERMINISTIC and never guesses.
It selects one calendar month, sums amounts per category and divides by
the month total. When there is nothing to divide by, the result says so
explicitly instead of producing NaN fractions.

The output is already in the chart's units: category labels paired with
fractions of the month total.
"""

from decimal import Decimal
from typing import Iterable

from expense_ledger.errors import NoDataError
from expense_ledger.models.entry import (
    CategoryBreakdown,
    CategoryShare,
    LedgerEntry,
    MonthLike,
    MonthSelection,
)


def entries_in_month(
    entries: Iterable[LedgerEntry],
    target_month: MonthLike,
) -> list[LedgerEntry]:
    """Entries whose date falls in the given calendar month, in order."""
    month = MonthSelection.from_value(target_month)
    return [entry for entry in entries if month.contains(entry.date)]


def category_totals(entries: Iterable[LedgerEntry]) -> dict[str, Decimal]:
    """Sum of amounts per category, in first-encountered order."""
    totals: dict[str, Decimal] = {}
    for entry in entries:
        totals[entry.category] = totals.get(entry.category, Decimal("0")) + entry.amount
    return totals


def aggregate_by_month(
    entries: Iterable[LedgerEntry],
    target_month: MonthLike,
    sort_by_share: bool = False,
    strict: bool = False,
) -> CategoryBreakdown:
    """
    Break one month of the ledger down by category.

    Args:
        entries: Ledger snapshot
        target_month: Month to aggregate (date, "YYYY-MM", (year, month), ...)
        sort_by_share: Order shares by descending fraction instead of
                       first appearance
        strict: Raise NoDataError instead of returning a no-data result

    Returns:
        CategoryBreakdown; data_found is False when the month is empty
        or its amounts sum to zero
    """
    month = MonthSelection.from_value(target_month)
    selected = entries_in_month(entries, month)
    total = sum((entry.amount for entry in selected), Decimal("0"))

    if not selected or total == 0:
        if strict:
            raise NoDataError(month)
        return CategoryBreakdown(
            month=month,
            data_found=False,
            total=total,
            entry_count=len(selected),
            description=f"No spending recorded in {month.label}",
        )

    shares = [
        CategoryShare(
            category=category,
            total=category_total,
            fraction=float(category_total / total),
        )
        for category, category_total in category_totals(selected).items()
    ]
    if sort_by_share:
        # sorted() is stable, so equal shares keep first-encountered order
        shares = sorted(shares, key=lambda share: share.fraction, reverse=True)

    return CategoryBreakdown(
        month=month,
        data_found=True,
        total=total,
        entry_count=len(selected),
        shares=shares,
        description=(
            f"{len(shares)} categories across {len(selected)} entries "
            f"in {month.label}"
        ),
    )
