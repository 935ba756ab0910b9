"""
Two-Stage Entry Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - FIELD VALIDATION:
- Every field present and non-empty
- Amount parses as a finite number
- Date parses as a calendar date
- Payment method is registered
- These are ERRORS: the entry cannot be saved

STAGE 2 - SEMANTIC CHECKS:
- Date far in the future
- Absurdly large amount
- Zero amount
- These are WARNINGS: shown to the user, never blocking

Stage 2 only runs when stage 1 passes, since it needs parsed values.

IMPORTANT: Validation NEVER silently fixes values beyond normalization
(trimming whitespace, canonical date form). Problems are reported,
one message per field.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from expense_ledger.config import get_settings
from expense_ledger.config.settings import AppSettings
from expense_ledger.errors import EntryValidationError
from expense_ledger.models.entry import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_LIMIT,
    LedgerEntry,
    PaymentMethod,
    ValidationIssue,
    ValidationResult,
    is_known_payment_method,
    payment_methods,
)

# Form field names, in display order
ENTRY_FIELDS = ("date", "category", "description", "amount", "payment_method")

FIELD_LABELS = {
    "date": "Date",
    "category": "Category",
    "description": "Description",
    "amount": "Amount",
    "payment_method": "Payment method",
}

MAX_CATEGORY_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 255


def _raw_value(values: Mapping[str, Any], field: str) -> Any:
    if field == "payment_method" and field not in values:
        return values.get("paymentMethod")
    return values.get(field)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing(field: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{FIELD_LABELS[field]} is required.",
        severity="error",
    )


class EntryValidator:
    """
    Validates raw form values before they become a LedgerEntry.

    Stage 1: Field validation (errors)
    Stage 2: Semantic checks (warnings)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings if settings is not None else get_settings().app

    def _parse_date(
        self,
        raw: Any,
    ) -> tuple[Optional[date], Optional[ValidationIssue]]:
        if isinstance(raw, datetime):
            return raw.date(), None
        if isinstance(raw, date):
            return raw, None

        text = str(raw).strip()
        try:
            if len(text) == 10:
                return datetime.strptime(text, "%Y-%m-%d").date(), None
            return datetime.fromisoformat(text).date(), None
        except ValueError:
            return None, ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message="Enter a valid date (YYYY-MM-DD).",
                severity="error",
                suggested_fix="Pick the date from the calendar",
            )

    def _parse_amount(
        self,
        raw: Any,
    ) -> tuple[Optional[Decimal], Optional[ValidationIssue]]:
        invalid = ValidationIssue(
            field="amount",
            issue_type="invalid_format",
            message="Enter a valid number for the amount.",
            severity="error",
        )
        if isinstance(raw, bool):
            return None, invalid
        try:
            amount = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            return None, invalid
        if not amount.is_finite():
            return None, invalid
        if amount.normalize().as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
            return None, ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount can have at most {AMOUNT_DECIMAL_PLACES} decimal places.",
                severity="error",
            )
        if abs(amount) >= AMOUNT_LIMIT:
            return None, ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount must be below {AMOUNT_LIMIT:,}.",
                severity="error",
            )
        return amount, None

    def _parse_text(
        self,
        field: str,
        raw: Any,
        max_length: int,
    ) -> tuple[Optional[str], Optional[ValidationIssue]]:
        text = str(raw).strip()
        if len(text) > max_length:
            return None, ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{FIELD_LABELS[field]} must be {max_length} characters or fewer.",
                severity="error",
            )
        return text, None

    def _parse_payment_method(
        self,
        raw: Any,
    ) -> tuple[Optional[str], Optional[ValidationIssue]]:
        code = raw.value if isinstance(raw, PaymentMethod) else str(raw).strip()
        if not is_known_payment_method(code):
            return None, ValidationIssue(
                field="payment_method",
                issue_type="invalid_value",
                message=f"Unknown payment method: {code}.",
                severity="error",
                suggested_fix="Choose one of: " + ", ".join(payment_methods().values()),
            )
        return code, None

    def _validate_fields(
        self,
        values: Mapping[str, Any],
    ) -> tuple[dict[str, Any], list[ValidationIssue]]:
        """
        Stage 1: Field validation.

        Returns: (parsed_values, list_of_issues)
        """
        parsed: dict[str, Any] = {}
        issues = []

        for field in ENTRY_FIELDS:
            raw = _raw_value(values, field)
            if _is_blank(raw):
                issues.append(_missing(field))
                continue

            if field == "date":
                value, issue = self._parse_date(raw)
            elif field == "amount":
                value, issue = self._parse_amount(raw)
            elif field == "payment_method":
                value, issue = self._parse_payment_method(raw)
            elif field == "category":
                value, issue = self._parse_text(field, raw, MAX_CATEGORY_LENGTH)
            else:
                value, issue = self._parse_text(field, raw, MAX_DESCRIPTION_LENGTH)

            if issue:
                issues.append(issue)
            else:
                parsed[field] = value

        return parsed, issues

    def _validate_semantic(self, parsed: dict[str, Any]) -> list[ValidationIssue]:
        """
        Stage 2: Semantic checks on parsed values.

        Everything found here is a warning.
        """
        issues = []
        today = date.today()

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if parsed["date"] > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({parsed['date'].isoformat()}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        amount = parsed["amount"]
        max_amount = Decimal(str(self._settings.max_entry_amount))
        if abs(amount) > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))
        elif amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
            ))

        return issues

    def validate(self, values: Mapping[str, Any]) -> ValidationResult:
        """
        Run both validation stages on raw form values.

        Returns:
            ValidationResult; when valid, ``values`` holds the normalized
            fields with the date in canonical YYYY-MM-DD form
        """
        parsed, issues = self._validate_fields(values)

        fields_valid = not any(issue.severity == "error" for issue in issues)
        if fields_valid:
            issues.extend(self._validate_semantic(parsed))

        normalized = None
        if fields_valid:
            normalized = dict(parsed)
            normalized["date"] = parsed["date"].isoformat()

        return ValidationResult(
            is_valid=fields_valid,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
            values=normalized,
        )

    def build_entry(
        self,
        values: Mapping[str, Any],
        entry_id: Optional[int] = None,
    ) -> tuple[LedgerEntry, ValidationResult]:
        """
        Validate and construct an entry.

        Raises:
            EntryValidationError: If any field is invalid
        """
        result = self.validate(values)
        if not result.is_valid:
            raise EntryValidationError(result.issues)

        try:
            entry = LedgerEntry(id=entry_id, **result.values)
        except ValidationError as e:
            issues = [
                ValidationIssue(
                    field=str(error["loc"][0]) if error["loc"] else "entry",
                    issue_type="invalid_value",
                    message=error["msg"],
                    severity="error",
                )
                for error in e.errors()
            ]
            raise EntryValidationError(issues) from e

        return entry, result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Summary of a validation result for display above the form.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append(f"❌ Please fix the following ({result.error_count}):")
            for message in result.field_errors.values():
                lines.append(f"   • {message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
