"""
Transaction Draft Validation

DESIGN DECISION: Validation is limited to presence checks plus the
data-model rule that an amount is a non-negative number.

ERRORS (block the submission):
- Amount missing, not a number, or negative
- Category empty, or not in the list for the draft's type

A transaction's category is only checked here, when it is submitted.
Deleting a category later leaves existing transactions alone.

IMPORTANT: Validation NEVER silently fixes input.
It reports issues; the store decides whether to raise or ignore.
"""

from typing import Optional

from finance_tracker.models.transaction import (
    CategorySet,
    DraftValidationResult,
    TransactionDraft,
    ValidationIssue,
)


class TransactionDraftValidator:
    """Checks a draft before the store turns it into a Transaction."""

    def validate(
        self,
        draft: TransactionDraft,
        categories: Optional[CategorySet] = None,
    ) -> DraftValidationResult:
        """
        Validate a draft.

        Args:
            draft: The user's submission
            categories: Current categories. If None, category membership
                        is not checked.
        """
        issues = []
        amount = None

        if not draft.amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            amount = draft.parsed_amount()
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount '{draft.amount}' is not a number",
                    severity="error",
                ))
            elif amount < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="negative_amount",
                    message="Amount cannot be negative",
                    severity="error",
                ))
                amount = None

        if not draft.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        elif categories is not None and not categories.contains(draft.type, draft.category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=(
                    f"Category '{draft.category}' is not in the "
                    f"{draft.type.value} categories"
                ),
                severity="error",
            ))

        return DraftValidationResult(issues=issues, amount=amount)

    def get_user_friendly_summary(self, result: DraftValidationResult) -> str:
        """One line per issue, errors first."""
        if not result.issues:
            return "All checks passed."

        lines = [f"Error: {issue.message}" for issue in result.errors]
        lines.extend(f"Warning: {issue.message}" for issue in result.warnings)
        return "\n".join(lines)
