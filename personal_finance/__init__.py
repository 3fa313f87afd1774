"""
Personal Finance - Source Package

Track personal income and expenses against a hosted Supabase backend,
with an optimistic, filter-aware record list.

DESIGN PRINCIPLES:
1. Validate before any network call
2. Show the user's intent immediately, reconcile or roll back after
3. Fail visibly, never leave a half-applied list behind
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Finance Team"
