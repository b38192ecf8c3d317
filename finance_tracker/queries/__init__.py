"""Derived-view package."""

from finance_tracker.models.transaction import format_amount
from finance_tracker.queries.views import (
    available_categories,
    category_summary,
    compute_totals,
    filter_and_sort,
    format_signed_amount,
    monthly_summary,
)

__all__ = [
    "available_categories",
    "category_summary",
    "compute_totals",
    "filter_and_sort",
    "format_amount",
    "format_signed_amount",
    "monthly_summary",
]
