"""Shared fixtures for the expense ledger tests."""

from datetime import date
from decimal import Decimal

import pytest

from expense_ledger.audit import AuditLogger, InMemoryAuditSink
from expense_ledger.config.settings import AppSettings
from expense_ledger.models.entry import LedgerEntry
from expense_ledger.store import LedgerStore


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def settings():
    return AppSettings(_env_file=None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return LedgerStore(clock=clock)


@pytest.fixture
def sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit_logger(sink):
    return AuditLogger(sink)


def make_entry(
    day="2024-03-05",
    category="food",
    description="lunch",
    amount="20",
    payment_method="cash",
    entry_id=None,
) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        date=date.fromisoformat(day),
        category=category,
        description=description,
        amount=Decimal(str(amount)),
        payment_method=payment_method,
    )
