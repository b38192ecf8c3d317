"""
Core Data Models for Finance Tracker

These models define the schemas for all ledger data:
1. Transactions and the drafts users submit to create them
2. The per-type category lists
3. View queries and the derived projections computed from them

DESIGN DECISION: Amounts are Decimal, never float.
Totals and balances are then exact, and 42.5 stays "42.5" in exports.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class FilterType(str, Enum):
    """Type filter offered by the transaction list."""
    ALL = "all"
    INCOME = "income"
    EXPENSE = "expense"


class SortOrder(str, Enum):
    """Sort orders offered by the transaction list."""
    DATE_DESC = "date-desc"      # Newest first (default)
    DATE_ASC = "date-asc"        # Oldest first
    AMOUNT_DESC = "amount-desc"  # High to low
    AMOUNT_ASC = "amount-asc"    # Low to high


ALL_CATEGORIES = "all"

DEFAULT_INCOME_CATEGORIES = ["Salary", "Freelance", "Investment", "Other"]
DEFAULT_EXPENSE_CATEGORIES = [
    "Food",
    "Transport",
    "Entertainment",
    "Bills",
    "Shopping",
    "Healthcare",
    "Other",
]


def format_amount(amount: Union[Decimal, int, float]) -> str:
    """
    Render an amount as plain decimal text.

    No exponent and no trailing zeros: Decimal("42.50") -> "42.5",
    Decimal("1E+2") -> "100".
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    if value == value.to_integral_value():
        return format(value.quantize(Decimal(1)), "f")
    return format(value.normalize(), "f")


# =============================================================================
# CORE LEDGER MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A single dated income or expense record.

    The category is checked against the category list only when the
    transaction is created. Deleting that category later leaves the
    reference in place.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        ge=0,
        description="Unique within the store's lifetime"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date (YYYY-MM-DD)"
    )
    category: str = Field(
        ...,
        min_length=1
    )
    notes: Optional[str] = Field(
        default=None,
        description="Free text, kept exactly as typed"
    )

    @field_validator('category', mode='before')
    @classmethod
    def strip_category(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, amount: Decimal) -> Union[int, float]:
        """Persist amounts as JSON numbers, the way stored blobs always have."""
        if amount == amount.to_integral_value():
            return int(amount)
        return float(amount)

    @property
    def month_key(self) -> str:
        """YYYY-MM bucket this transaction belongs to."""
        return self.date.isoformat()[:7]

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


class TransactionDraft(BaseModel):
    """
    What the user submitted through the transaction form.

    CRITICAL: This is UNVALIDATED input. Amount stays text here;
    TransactionDraftValidator decides whether it becomes a Transaction.
    """
    type: TransactionType = TransactionType.EXPENSE
    amount: Optional[str] = None
    date: dt.date = Field(default_factory=dt.date.today)
    category: str = ""
    notes: str = ""

    @field_validator('amount', mode='before')
    @classmethod
    def amount_as_text(cls, v):
        """Numbers typed into the form arrive as text; accept both."""
        if isinstance(v, bool):
            raise ValueError("Amount must be a number, not a boolean")
        if isinstance(v, (int, float, Decimal)):
            return str(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator('category', mode='before')
    @classmethod
    def strip_category(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('notes', mode='before')
    @classmethod
    def notes_default(cls, v):
        return "" if v is None else v

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionDraft":
        """Pre-fill a draft for editing an existing transaction."""
        return cls(
            type=transaction.type,
            amount=format_amount(transaction.amount),
            date=transaction.date,
            category=transaction.category,
            notes=transaction.notes or "",
        )

    def parsed_amount(self) -> Optional[Decimal]:
        """The amount as a finite Decimal, or None if it doesn't parse."""
        if not self.amount:
            return None
        try:
            value = Decimal(self.amount)
        except InvalidOperation:
            return None
        if not value.is_finite():
            return None
        return value


class CategorySet(BaseModel):
    """
    Ordered category names, one list per transaction type.

    Names are not required to be unique across types.
    """

    income: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCOME_CATEGORIES)
    )
    expense: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXPENSE_CATEGORIES)
    )

    def for_type(self, type_: Union[TransactionType, str]) -> list[str]:
        """The list for a type (the live list, not a copy)."""
        if TransactionType(type_) == TransactionType.INCOME:
            return self.income
        return self.expense

    def contains(self, type_: Union[TransactionType, str], name: str) -> bool:
        return name in self.for_type(type_)

    @property
    def is_empty(self) -> bool:
        return not self.income and not self.expense


class LedgerState(BaseModel):
    """Everything that gets persisted: transactions plus categories."""

    transactions: list[Transaction] = Field(default_factory=list)
    categories: CategorySet = Field(default_factory=CategorySet)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing worth saving."""
        return not self.transactions and self.categories.is_empty


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in a draft."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'unknown_category')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Errors block the submission, warnings don't"
    )


class DraftValidationResult(BaseModel):
    """Outcome of checking a draft before it becomes a Transaction."""

    issues: list[ValidationIssue] = Field(default_factory=list)
    amount: Optional[Decimal] = Field(
        default=None,
        description="Parsed amount, set when the amount is usable"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]


# =============================================================================
# VIEW MODELS
# =============================================================================

class ViewQuery(BaseModel):
    """Filter and sort state of the transaction list."""

    filter_type: FilterType = FilterType.ALL
    filter_category: str = ALL_CATEGORIES
    sort_by: SortOrder = SortOrder.DATE_DESC


class Totals(BaseModel):
    """Summary card figures."""

    total_income: Decimal = Decimal(0)
    total_expenses: Decimal = Decimal(0)
    balance: Decimal = Decimal(0)


class MonthlyBucket(BaseModel):
    """Income and expense sums for one YYYY-MM month."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: Decimal = Decimal(0)
    expense: Decimal = Decimal(0)


class CategoryBucket(BaseModel):
    """
    Summed value for one category.

    `type` is the type of the first transaction seen with this category.
    """

    name: str
    value: Decimal = Decimal(0)
    type: TransactionType
    share: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Fraction of the summed value across all categories"
    )


class CsvExport(BaseModel):
    """A ready-to-download CSV file."""

    filename: str
    mime_type: str = "text/csv"
    content: str


class DashboardSnapshot(BaseModel):
    """Everything the presentation layer renders, computed in one pass."""

    totals: Totals
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Filtered and sorted list, as displayed"
    )
    monthly: list[MonthlyBucket] = Field(default_factory=list)
    by_category: list[CategoryBucket] = Field(default_factory=list)
    available_categories: list[str] = Field(default_factory=list)
    query: ViewQuery = Field(default_factory=ViewQuery)
    has_transactions: bool = Field(
        default=False,
        description="Charts are shown and export is enabled only when True"
    )
