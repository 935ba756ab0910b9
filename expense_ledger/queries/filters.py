"""
Ledger Filters

DESIGN DECISION: Filtering is a VIEW, never a mutation.
Every function here takes a snapshot and returns a new list; the stored
ledger is untouched. The visible rows are re-derived from the full
ledger each time the range or selection changes, so narrowing and then
widening a date range brings entries back.
"""

from datetime import date, datetime
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_ledger.models.entry import LedgerEntry

DateBound = Union[date, datetime, str, None]


def to_day(value: DateBound) -> Optional[date]:
    """
    Normalize a bound to a calendar day.

    Datetimes are truncated, strings must be ISO dates (a time part is ignored).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return date.fromisoformat(text[:10])
    raise TypeError(f"Unsupported date bound: {value!r}")


def filter_by_date_range(
    entries: Iterable[LedgerEntry],
    start: DateBound = None,
    end: DateBound = None,
) -> list[LedgerEntry]:
    """
    Entries dated within [start, end], both ends inclusive.

    A missing bound leaves that side open. Order is preserved.
    """
    start_day = to_day(start)
    end_day = to_day(end)
    return [
        entry for entry in entries
        if (start_day is None or entry.date >= start_day)
        and (end_day is None or entry.date <= end_day)
    ]


def filter_by_payment_method(
    entries: Iterable[LedgerEntry],
    methods: Optional[Iterable[str]] = None,
) -> list[LedgerEntry]:
    """Entries paid with one of ``methods``. No methods means no filtering."""
    selected = {getattr(m, "value", m) for m in methods or ()}
    if not selected:
        return list(entries)
    return [entry for entry in entries if entry.payment_method in selected]


def sort_by_amount(
    entries: Iterable[LedgerEntry],
    descending: bool = False,
) -> list[LedgerEntry]:
    """Stable numeric sort on amount."""
    return sorted(entries, key=lambda entry: entry.amount, reverse=descending)


class LedgerView(BaseModel):
    """
    What the table currently shows.

    Holds the user's view settings only; apply() derives the visible
    rows from whatever snapshot it is given.
    """
    model_config = ConfigDict(frozen=True)

    start: Optional[date] = None
    end: Optional[date] = None
    payment_methods: tuple[str, ...] = ()
    amount_order: Optional[str] = Field(
        default=None,
        pattern="^(asc|desc)$",
        description="Sort by amount; None keeps insertion order"
    )

    @field_validator('start', 'end', mode='before')
    @classmethod
    def normalize_bound(cls, v):
        # an inverted range is allowed and simply matches nothing
        return to_day(v)

    @property
    def has_date_range(self) -> bool:
        return self.start is not None or self.end is not None

    def apply(self, entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
        visible = filter_by_date_range(entries, self.start, self.end)
        visible = filter_by_payment_method(visible, self.payment_methods)
        if self.amount_order:
            visible = sort_by_amount(visible, descending=self.amount_order == "desc")
        return visible

    def describe(self) -> str:
        """Human-readable summary, e.g. for the table caption."""
        parts = []
        if self.start and self.end:
            parts.append(f"from {self.start.isoformat()} to {self.end.isoformat()}")
        elif self.start:
            parts.append(f"from {self.start.isoformat()}")
        elif self.end:
            parts.append(f"until {self.end.isoformat()}")
        if self.payment_methods:
            parts.append("paid by " + ", ".join(self.payment_methods))
        if self.amount_order:
            parts.append(
                "largest amount first" if self.amount_order == "desc"
                else "smallest amount first"
            )
        return "; ".join(parts) or "all entries"
