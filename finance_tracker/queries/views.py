"""
Derived-View Engine

DESIGN DECISION: Every view is a pure function of the current state.
Nothing here is cached or stored; the presentation layer asks again
after each mutation and gets a fresh projection.

Views:
- Totals for the summary cards
- The filtered and sorted transaction list
- Monthly income/expense series for the line chart
- Per-category sums for the pie chart
- Category choices for the filter drop-down
"""

from decimal import Decimal
from typing import Iterable, Union

from finance_tracker.models.transaction import (
    ALL_CATEGORIES,
    CategoryBucket,
    CategorySet,
    FilterType,
    MonthlyBucket,
    SortOrder,
    Totals,
    Transaction,
    TransactionType,
    ViewQuery,
    format_amount,
)


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    """Total income, total expenses and the balance between them."""
    total_income = Decimal(0)
    total_expenses = Decimal(0)

    for txn in transactions:
        if txn.type == TransactionType.INCOME:
            total_income += txn.amount
        else:
            total_expenses += txn.amount

    return Totals(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=total_income - total_expenses,
    )


def _matches(txn: Transaction, query: ViewQuery) -> bool:
    if query.filter_type != FilterType.ALL and txn.type.value != query.filter_type.value:
        return False
    if query.filter_category != ALL_CATEGORIES and txn.category != query.filter_category:
        return False
    return True


def filter_and_sort(
    transactions: Iterable[Transaction],
    query: ViewQuery,
) -> list[Transaction]:
    """
    The transaction list as displayed.

    Sorting is stable: equal dates or amounts keep their insertion order.
    """
    matching = [txn for txn in transactions if _matches(txn, query)]

    if query.sort_by == SortOrder.DATE_DESC:
        matching.sort(key=lambda t: t.date, reverse=True)
    elif query.sort_by == SortOrder.DATE_ASC:
        matching.sort(key=lambda t: t.date)
    elif query.sort_by == SortOrder.AMOUNT_DESC:
        matching.sort(key=lambda t: t.amount, reverse=True)
    elif query.sort_by == SortOrder.AMOUNT_ASC:
        matching.sort(key=lambda t: t.amount)

    return matching


def monthly_summary(transactions: Iterable[Transaction]) -> list[MonthlyBucket]:
    """Income and expense per YYYY-MM month, oldest month first."""
    groups: dict[str, MonthlyBucket] = {}

    for txn in transactions:
        key = txn.month_key
        if key not in groups:
            groups[key] = MonthlyBucket(month=key)
        if txn.type == TransactionType.INCOME:
            groups[key].income += txn.amount
        else:
            groups[key].expense += txn.amount

    # YYYY-MM sorts chronologically as text
    return [groups[key] for key in sorted(groups)]


def category_summary(transactions: Iterable[Transaction]) -> list[CategoryBucket]:
    """
    Summed amounts per category, in first-seen order.

    NOTE: a category name used by both income and expense transactions
    is still one bucket, typed after whichever transaction came first.
    """
    groups: dict[str, CategoryBucket] = {}

    for txn in transactions:
        if txn.category not in groups:
            groups[txn.category] = CategoryBucket(name=txn.category, type=txn.type)
        groups[txn.category].value += txn.amount

    buckets = list(groups.values())
    grand_total = sum((bucket.value for bucket in buckets), Decimal(0))
    if grand_total > 0:
        for bucket in buckets:
            bucket.share = float(bucket.value / grand_total)

    return buckets


def available_categories(
    categories: CategorySet,
    filter_type: Union[FilterType, str],
) -> list[str]:
    """Choices for the category filter under the current type filter."""
    filter_type = FilterType(filter_type)
    if filter_type == FilterType.ALL:
        return [*categories.income, *categories.expense]
    return list(categories.for_type(filter_type.value))


def format_signed_amount(txn: Transaction, currency_symbol: str = "") -> str:
    """'+₦1500' for income, '-₦42.5' for expense."""
    sign = "+" if txn.type == TransactionType.INCOME else "-"
    return f"{sign}{currency_symbol}{format_amount(txn.amount)}"

