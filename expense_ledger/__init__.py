"""
Expense Ledger - Source Package

A personal expense ledger: record entries, filter them by date and
payment method, and break each month down by category.

DESIGN PRINCIPLES:
1. The session owns the ledger; nothing is global
2. Entries are immutable; edits replace them wholesale
3. Views are derived; destructive filtering is opt-in
4. No silent corrections, no NaN fractions
5. Every user action is auditable
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"
