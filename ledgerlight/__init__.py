"""
LedgerLight - Source Package

A minimal personal finance tracker: record income and expenses
against a ledger, tag them by category, and review monthly
summaries and charts.

DESIGN PRINCIPLES:
1. Recording an entry should take seconds
2. Aggregations are pure functions over query results
3. Persistence is a swappable collaborator
4. Save failures are visible, never silently swallowed
5. Every state change goes through an explicit setter or flow
"""

__version__ = "1.0.0"
__author__ = "LedgerLight Team"
