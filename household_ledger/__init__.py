"""
Household Ledger - Source Package

A shared expense ledger for one household: income and expenses tagged by
category and payer, monthly totals against layered budgets, and a local
copy kept in step with a single shared remote snapshot.

DESIGN PRINCIPLES:
1. Local storage is the source of truth
2. Totals are derived, never stored
3. Remote sync is best-effort and invisible to the user
4. Untrusted payloads are validated once, at the boundary
5. Storage layers are swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
