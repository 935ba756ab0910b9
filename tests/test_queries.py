"""Tests for ledger filters and the monthly category aggregation."""

import math
import pytest
from datetime import date, datetime
from decimal import Decimal

from expense_ledger.errors import NoDataError
from expense_ledger.models.entry import MonthSelection
from expense_ledger.queries import (
    LedgerView,
    aggregate_by_month,
    category_totals,
    entries_in_month,
    filter_by_date_range,
    filter_by_payment_method,
    sort_by_amount,
)

from tests.conftest import make_entry


@pytest.fixture
def ledger():
    return [
        make_entry(day="2024-02-28", category="food", amount="10", payment_method="cash", entry_id=1),
        make_entry(day="2024-03-01", category="rent", amount="300", payment_method="transfer", entry_id=2),
        make_entry(day="2024-03-15", category="food", amount="100", payment_method="creditCard", entry_id=3),
        make_entry(day="2024-03-31", category="travel", amount="50", payment_method="cash", entry_id=4),
        make_entry(day="2024-04-01", category="food", amount="5", payment_method="cash", entry_id=5),
    ]


def ids(entries):
    return [entry.id for entry in entries]


class TestDateRangeFilter:
    """Tests for filter_by_date_range."""

    def test_inclusive_bounds(self, ledger):
        """Test that both bounds are inclusive."""
        result = filter_by_date_range(ledger, date(2024, 3, 1), date(2024, 3, 31))
        assert ids(result) == [2, 3, 4]

    def test_open_start(self, ledger):
        assert ids(filter_by_date_range(ledger, None, "2024-03-01")) == [1, 2]

    def test_open_end(self, ledger):
        assert ids(filter_by_date_range(ledger, "2024-03-31")) == [4, 5]

    def test_no_bounds_returns_everything(self, ledger):
        assert ids(filter_by_date_range(ledger)) == [1, 2, 3, 4, 5]

    def test_datetime_bounds_use_day_granularity(self, ledger):
        """Test that time of day on the bounds is ignored."""
        result = filter_by_date_range(
            ledger,
            datetime(2024, 3, 1, 23, 59),
            datetime(2024, 3, 15, 0, 0),
        )
        assert ids(result) == [2, 3]

    def test_inverted_range_is_empty(self, ledger):
        assert filter_by_date_range(ledger, "2024-04-01", "2024-03-01") == []

    def test_is_idempotent(self, ledger):
        """Test filtering a filtered result with the same range changes nothing."""
        once = filter_by_date_range(ledger, "2024-03-01", "2024-03-31")
        twice = filter_by_date_range(once, "2024-03-01", "2024-03-31")
        assert once == twice

    def test_input_is_not_mutated(self, ledger):
        before = list(ledger)
        filter_by_date_range(ledger, "2024-03-01", "2024-03-01")
        assert ledger == before


class TestPaymentMethodFilter:
    """Tests for filter_by_payment_method."""

    def test_single_method(self, ledger):
        assert ids(filter_by_payment_method(ledger, ["cash"])) == [1, 4, 5]

    def test_several_methods(self, ledger):
        assert ids(filter_by_payment_method(ledger, ["transfer", "creditCard"])) == [2, 3]

    def test_no_methods_means_no_filter(self, ledger):
        assert ids(filter_by_payment_method(ledger, None)) == [1, 2, 3, 4, 5]
        assert ids(filter_by_payment_method(ledger, [])) == [1, 2, 3, 4, 5]


class TestSortByAmount:
    """Tests for sort_by_amount."""

    def test_numeric_not_lexical(self):
        entries = [
            make_entry(amount="9", entry_id=1),
            make_entry(amount="100", entry_id=2),
            make_entry(amount="-5", entry_id=3),
        ]
        assert ids(sort_by_amount(entries)) == [3, 1, 2]
        assert ids(sort_by_amount(entries, descending=True)) == [2, 1, 3]

    def test_stable_for_equal_amounts(self):
        entries = [make_entry(amount="1", entry_id=i) for i in range(1, 4)]
        assert ids(sort_by_amount(entries)) == [1, 2, 3]


class TestLedgerView:
    """Tests for the combined table view."""

    def test_default_view_shows_everything(self, ledger):
        view = LedgerView()
        assert not view.has_date_range
        assert ids(view.apply(ledger)) == [1, 2, 3, 4, 5]
        assert view.describe() == "all entries"

    def test_combined_filters(self, ledger):
        view = LedgerView(
            start="2024-03-01",
            end="2024-04-30",
            payment_methods=("cash",),
            amount_order="desc",
        )
        assert ids(view.apply(ledger)) == [4, 5]
        assert "from 2024-03-01 to 2024-04-30" in view.describe()

    def test_invalid_order_rejected(self):
        with pytest.raises(ValueError):
            LedgerView(amount_order="sideways")


class TestAggregateByMonth:
    """Tests for aggregate_by_month."""

    def test_food_and_rent_example(self):
        """Test the 100/300 split yields 0.25/0.75."""
        entries = [
            make_entry(day="2024-03-02", category="food", amount="100"),
            make_entry(day="2024-03-20", category="rent", amount="300"),
        ]
        breakdown = aggregate_by_month(entries, "2024-03")
        assert breakdown.data_found is True
        assert breakdown.total == Decimal("400")
        assert breakdown.as_chart_data() == [("food", 0.25), ("rent", 0.75)]

    def test_fractions_sum_to_one(self, ledger):
        breakdown = aggregate_by_month(ledger, date(2024, 3, 10))
        assert math.isclose(sum(f for _, f in breakdown.as_chart_data()), 1.0)

    def test_groups_in_first_encountered_order(self, ledger):
        breakdown = aggregate_by_month(ledger, (2024, 3))
        assert [s.category for s in breakdown.shares] == ["rent", "food", "travel"]
        assert breakdown.shares[1].total == Decimal("100")
        assert breakdown.entry_count == 3

    def test_sort_by_share(self, ledger):
        breakdown = aggregate_by_month(ledger, "2024-03", sort_by_share=True)
        assert [s.category for s in breakdown.shares] == ["rent", "food", "travel"]
        fractions = [s.fraction for s in breakdown.shares]
        assert fractions == sorted(fractions, reverse=True)

    def test_sort_by_share_reorders(self):
        entries = [
            make_entry(day="2024-03-01", category="small", amount="1"),
            make_entry(day="2024-03-02", category="big", amount="9"),
        ]
        breakdown = aggregate_by_month(entries, "2024-03", sort_by_share=True)
        assert [s.category for s in breakdown.shares] == ["big", "small"]

    def test_other_months_excluded(self, ledger):
        """Test that entries from other months never leak into the result."""
        breakdown = aggregate_by_month(ledger, "2024-02")
        assert breakdown.as_chart_data() == [("food", 1.0)]
        assert breakdown.total == Decimal("10")

        april = aggregate_by_month(ledger, "2024-04")
        assert april.total == Decimal("5")
        assert april.entry_count == 1

    def test_same_month_other_year_excluded(self):
        entries = [
            make_entry(day="2023-03-10", category="old", amount="10"),
            make_entry(day="2024-03-10", category="new", amount="10"),
        ]
        breakdown = aggregate_by_month(entries, "2024-03")
        assert breakdown.as_chart_data() == [("new", 1.0)]

    def test_empty_month_is_no_data(self, ledger):
        """Test an empty month gives an explicit no-data result."""
        breakdown = aggregate_by_month(ledger, "2025-01")
        assert breakdown.data_found is False
        assert breakdown.shares == []
        assert breakdown.as_chart_data() == []
        assert "January 2025" in breakdown.description

    def test_zero_total_is_no_data(self):
        """Test that amounts cancelling out never produce NaN."""
        entries = [
            make_entry(day="2024-03-01", category="refund", amount="-50"),
            make_entry(day="2024-03-02", category="shoes", amount="50"),
        ]
        breakdown = aggregate_by_month(entries, "2024-03")
        assert breakdown.data_found is False
        assert breakdown.entry_count == 2
        assert breakdown.shares == []

    def test_extreme_amounts_give_finite_fractions(self):
        """Test that the largest amounts cancelling down to a cent stay finite."""
        entries = [
            make_entry(day="2024-03-01", category="food", amount="9999999999999.99"),
            make_entry(day="2024-03-02", category="refund", amount="-9999999999999.99"),
            make_entry(day="2024-03-03", category="coffee", amount="0.01"),
        ]
        breakdown = aggregate_by_month(entries, "2024-03")
        assert breakdown.data_found
        assert breakdown.total == Decimal("0.01")
        assert all(math.isfinite(f) for _, f in breakdown.as_chart_data())
        assert breakdown.as_chart_data()[2] == ("coffee", 1.0)

    def test_strict_raises(self):
        with pytest.raises(NoDataError) as exc_info:
            aggregate_by_month([], "2024-03", strict=True)
        assert exc_info.value.month == MonthSelection(year=2024, month=3)

    def test_helpers(self, ledger):
        march = entries_in_month(ledger, "2024-03")
        assert ids(march) == [2, 3, 4]
        assert category_totals(march) == {
            "rent": Decimal("300"),
            "food": Decimal("100"),
            "travel": Decimal("50"),
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
