"""
Finance Tracker - Source Package

A personal finance ledger for recording income and expense transactions,
summarizing them for charts and exporting them to CSV.

DESIGN PRINCIPLES:
1. State lives in one explicit store, never in globals
2. Every derived view is recomputed from current state
3. Persistence is best effort and never blocks a mutation
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
