"""
BudgetWise - Source Package

A personal budget tracker: income/expense transactions, categories,
spending limits, templates, recurring items and savings goals, all
stored locally and partitioned per account.

DESIGN PRINCIPLES:
1. Every record belongs to exactly one account
2. Storage is a plain key-value store (last write wins)
3. Derived numbers are recomputed, never stored
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "BudgetWise Team"
