"""
Core Data Models for the Expense Ledger

These models define the schemas for everything flowing between the
ledger core and the presentation layer. They are designed to:
1. Be immutable once constructed (edits replace entries wholesale)
2. Give clear validation error messages
3. Serialize cleanly for the table and the chart

DESIGN DECISION: Entries are frozen Pydantic v2 models. The store never
mutates an entry in place; an edit builds a new entry with the same id.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from expense_ledger.errors import UnknownPaymentMethodError

# LedgerEntry has a field named ``date``; annotate it through this alias
CalendarDate = date

# Amounts are money: cents precision, magnitude below 10^13
AMOUNT_DECIMAL_PLACES = 2
AMOUNT_MAX_DIGITS = 15
AMOUNT_LIMIT = Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES)


# =============================================================================
# PAYMENT METHODS - Extensible closed set
# =============================================================================

class PaymentMethod(str, Enum):
    """
    Built-in payment methods.

    DESIGN DECISION: The enum holds the methods every ledger knows about.
    Additional methods are added through register_payment_method(), never
    by matching arbitrary strings.
    """
    CASH = "cash"
    CREDIT_CARD = "creditCard"
    TRANSFER = "transfer"


_BUILTIN_LABELS = {
    PaymentMethod.CASH.value: "Cash",
    PaymentMethod.CREDIT_CARD.value: "Credit card",
    PaymentMethod.TRANSFER.value: "Transfer",
}

# code -> display label, in registration order
_payment_methods: dict[str, str] = dict(_BUILTIN_LABELS)


def register_payment_method(code: str, label: Optional[str] = None) -> str:
    """
    Register an additional payment method.

    Registering an existing code only updates its label.
    Returns the normalized code.
    """
    code = code.strip()
    if not code:
        raise ValueError("Payment method code cannot be empty")
    _payment_methods[code] = (label or code).strip() or code
    return code


def unregister_payment_method(code: str) -> None:
    """Remove a registered method. Built-in methods cannot be removed."""
    if code in _BUILTIN_LABELS:
        raise ValueError(f"Cannot unregister built-in payment method: {code}")
    _payment_methods.pop(code, None)


def payment_methods() -> dict[str, str]:
    """All registered payment methods as {code: label}."""
    return dict(_payment_methods)


def is_known_payment_method(code: str) -> bool:
    return code in _payment_methods


def payment_method_label(code: str) -> str:
    """Display label for a registered payment method."""
    try:
        return _payment_methods[code]
    except KeyError:
        raise UnknownPaymentMethodError(code) from None


def register_payment_methods_from_string(pairs: str) -> list[str]:
    """
    Register methods from a ``code:Label`` comma-separated list.

    Used by the EXTRA_PAYMENT_METHODS setting, e.g.
    ``"debitCard:Debit card, paypal:PayPal"``.
    """
    registered = []
    for item in pairs.split(","):
        item = item.strip()
        if not item:
            continue
        code, _, label = item.partition(":")
        registered.append(register_payment_method(code, label or None))
    return registered


# =============================================================================
# LEDGER ENTRY
# =============================================================================

class LedgerEntry(BaseModel):
    """
    One financial transaction record.

    CRITICAL: Entries are immutable. An edit is a full replacement
    that keeps the id; there is no partial field mutation.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: Optional[int] = Field(
        default=None,
        description="Unique within the ledger; assigned by the store when absent"
    )
    date: CalendarDate = Field(
        ...,
        description="Transaction date (day granularity)"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Free-form category label"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="What the money was for"
    )
    amount: Decimal = Field(
        ...,
        allow_inf_nan=False,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Signed amount, no currency enforcement"
    )
    payment_method: str = Field(
        ...,
        validation_alias=AliasChoices("payment_method", "paymentMethod"),
        description="Code of a registered payment method"
    )

    @field_validator('date', mode='before')
    @classmethod
    def truncate_datetime(cls, v):
        """Datetimes are reduced to their calendar day."""
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator('payment_method', mode='before')
    @classmethod
    def validate_payment_method(cls, v):
        if isinstance(v, PaymentMethod):
            v = v.value
        if not isinstance(v, str) or not is_known_payment_method(v.strip()):
            raise ValueError(f"Unknown payment method: {v!r}")
        return v.strip()

    @property
    def date_str(self) -> str:
        """Canonical YYYY-MM-DD form of the date."""
        return self.date.isoformat()

    @property
    def payment_method_label(self) -> str:
        return payment_method_label(self.payment_method)

    def with_id(self, entry_id: int) -> "LedgerEntry":
        """Copy of this entry carrying a different id."""
        return self.model_copy(update={"id": entry_id})


# =============================================================================
# MONTH SELECTION
# =============================================================================

MonthLike = Union["MonthSelection", date, datetime, str, tuple]


class MonthSelection(BaseModel):
    """
    A calendar month used for aggregation.

    Month matching is by (year, month), not by date range.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def from_value(cls, value: MonthLike) -> "MonthSelection":
        """
        Build a selection from a date, datetime, ``YYYY-MM`` /
        ``YYYY-MM-DD`` string, ``(year, month)`` tuple or selection.
        """
        if isinstance(value, MonthSelection):
            return value
        if isinstance(value, (date, datetime)):
            return cls(year=value.year, month=value.month)
        if isinstance(value, tuple) and len(value) == 2:
            return cls(year=value[0], month=value[1])
        if isinstance(value, str):
            text = value.strip()
            try:
                parsed = datetime.strptime(text[:7], "%Y-%m")
            except ValueError:
                raise ValueError(f"Invalid month: {value!r}") from None
            if len(text) > 7:
                # full date given: make sure the rest of it is valid too
                date.fromisoformat(text[:10])
            return cls(year=parsed.year, month=parsed.month)
        raise TypeError(f"Cannot build a month selection from {type(value).__name__}")

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        return date(self.year, self.month, 1).strftime("%B %Y")

    def __str__(self) -> str:
        return self.key


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class CategoryShare(BaseModel):
    """One slice of the monthly breakdown."""
    model_config = ConfigDict(frozen=True)

    category: str
    total: Decimal
    fraction: float = Field(
        ...,
        allow_inf_nan=False,
        description="category total / month total"
    )


class CategoryBreakdown(BaseModel):
    """
    Result of aggregating a month by category.

    GUARANTEES:
    - data_found is False when the month is empty or sums to zero
    - shares is empty in that case; no NaN fraction is ever produced
    """

    month: MonthSelection
    data_found: bool
    total: Decimal = Decimal("0")
    entry_count: int = Field(default=0, ge=0)
    shares: list[CategoryShare] = Field(default_factory=list)
    description: str = ""

    @model_validator(mode='after')
    def validate_no_data(self) -> 'CategoryBreakdown':
        if not self.data_found and self.shares:
            raise ValueError("A no-data breakdown cannot carry shares")
        return self

    def as_chart_data(self) -> list[tuple[str, float]]:
        """(category, fraction) pairs for the chart."""
        return [(share.category, share.fraction) for share in self.shares]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found with a candidate entry."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of validating raw form values.

    Warnings never block submission; errors always do.
    """

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    # Normalized values, only present when is_valid
    values: Optional[dict] = None

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def field_errors(self) -> dict[str, str]:
        """One message per invalid field (the first error found)."""
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error":
                errors.setdefault(issue.field, issue.message)
        return errors
