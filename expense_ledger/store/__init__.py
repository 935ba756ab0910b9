"""Ledger storage package."""

from expense_ledger.store.ledger_store import LedgerStore

__all__ = ["LedgerStore"]
