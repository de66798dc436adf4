"""
Two-Stage Transaction Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - CONVENTION VALIDATION:
- Non-negative amount
- The right conto legs for the transaction type
- Recurrence descriptor completeness
- This catches transactions the ledger would silently misread

STAGE 2 - SANITY VALIDATION:
- Far-future date detection
- Absurd amount detection
- Recurrence end before start
- Dangling conto references and duplicates (needs storage)
- This catches data that is well-formed but suspicious

Stage 2 only runs when stage 1 has no errors.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the ledger engine never consults it. An income with a
source leg is still accepted, and balance math simply ignores that leg.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from finance_core.config import get_logger, get_settings
from finance_core.models.entities import Transaction, TransactionType
from finance_core.models.validation import ValidationIssue, ValidationResult
from finance_core.services.integrity import DataIntegrityService
from finance_core.services.storage import LedgerStorageInterface, StorageError

logger = get_logger(__name__)


class TransactionValidator:
    """
    Validates transactions through a two-stage pipeline.

    Stage 1: Convention validation (can run without storage)
    Stage 2: Sanity validation (uses storage for references and duplicates)
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
    ):
        """
        Initialize validator.

        Args:
            storage: Storage interface for reference and duplicate checks.
                     If None, those checks are skipped.
        """
        self._storage = storage
        self._settings = get_settings().validation

    def _validate_conventions(
        self,
        tx: Transaction,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Convention validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if tx.amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must not be negative; direction comes from the type",
                severity="error",
                suggested_fix="Enter the absolute amount and pick income or expense",
            ))
        elif tx.amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
                suggested_fix="Please verify the amount",
            ))

        if tx.type is TransactionType.INCOME:
            if tx.to_conto_id is None:
                issues.append(ValidationIssue(
                    field="to_conto_id",
                    issue_type="missing",
                    message="Income needs a destination conto",
                    severity="error",
                    suggested_fix="Choose the conto the money arrives in",
                ))
            if tx.from_conto_id is not None:
                issues.append(ValidationIssue(
                    field="from_conto_id",
                    issue_type="ignored_leg",
                    message="Source conto is ignored for income",
                    severity="warning",
                    suggested_fix="Record a transfer if money moved between conti",
                ))

        elif tx.type is TransactionType.EXPENSE:
            if tx.from_conto_id is None:
                issues.append(ValidationIssue(
                    field="from_conto_id",
                    issue_type="missing",
                    message="Expense needs a source conto",
                    severity="error",
                    suggested_fix="Choose the conto the money leaves from",
                ))
            if tx.to_conto_id is not None:
                issues.append(ValidationIssue(
                    field="to_conto_id",
                    issue_type="ignored_leg",
                    message="Destination conto is ignored for expenses",
                    severity="warning",
                    suggested_fix="Record a transfer if money moved between conti",
                ))

        else:
            if tx.from_conto_id is None and tx.to_conto_id is None:
                issues.append(ValidationIssue(
                    field="conti",
                    issue_type="missing",
                    message="Transfer needs at least one conto",
                    severity="error",
                    suggested_fix="Choose the source and destination conti",
                ))
            elif tx.from_conto_id == tx.to_conto_id:
                issues.append(ValidationIssue(
                    field="to_conto_id",
                    issue_type="invalid_value",
                    message="Transfer source and destination are the same conto",
                    severity="error",
                    suggested_fix="Choose two different conti",
                ))
            elif tx.from_conto_id is None or tx.to_conto_id is None:
                issues.append(ValidationIssue(
                    field="conti",
                    issue_type="external_transfer",
                    message="Transfer has only one conto; the other side is outside the ledger",
                    severity="info",
                ))

        if tx.is_recurring and tx.recurrence_frequency is None:
            issues.append(ValidationIssue(
                field="recurrence_frequency",
                issue_type="missing",
                message="Recurring transaction has no frequency",
                severity="error",
                suggested_fix="Choose how often it repeats",
            ))
        elif not tx.is_recurring and (
            tx.recurrence_frequency is not None or tx.recurrence_end_date is not None
        ):
            issues.append(ValidationIssue(
                field="is_recurring",
                issue_type="ignored_field",
                message="Recurrence details are set but the transaction is not recurring",
                severity="warning",
                suggested_fix="Mark it as recurring or clear the recurrence fields",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_sanity(
        self,
        tx: Transaction,
        today: datetime,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Sanity validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        # Planned entries may sit in the future, within tolerance
        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if tx.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({tx.date.date()}) is too far in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if tx.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({tx.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if (
            tx.is_recurring
            and tx.recurrence_end_date is not None
            and tx.recurrence_end_date < tx.date
        ):
            issues.append(ValidationIssue(
                field="recurrence_end_date",
                issue_type="inconsistent",
                message="Recurrence ends before the transaction date; it will never repeat",
                severity="warning",
                suggested_fix="Please verify the recurrence end date",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _check_references(self, tx: Transaction) -> list[ValidationIssue]:
        """Conto and category ids must exist in storage."""
        issues = []

        if self._storage is None:
            return issues

        for field in ("from_conto_id", "to_conto_id"):
            conto_id = getattr(tx, field)
            if conto_id is not None and self._storage.get_conto(conto_id) is None:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="unknown_reference",
                    message=f"Conto {conto_id} does not exist",
                    severity="error",
                    suggested_fix="Choose an existing conto",
                ))

        if tx.category_id is not None and self._storage.get_category(tx.category_id) is None:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="unknown_reference",
                message=f"Category {tx.category_id} does not exist",
                severity="warning",
                suggested_fix="Choose an existing category or leave it empty",
            ))

        return issues

    def _check_duplicates(self, tx: Transaction) -> list[ValidationIssue]:
        """
        Check for potential duplicate transactions.

        This requires storage access.
        """
        issues = []

        if self._storage is None:
            return issues

        try:
            duplicates = DataIntegrityService(self._storage).find_duplicates_of(tx)
        except StorageError as e:
            # Don't fail validation due to storage errors
            logger.warning("duplicate_check_failed", transaction_id=str(tx.id), error=str(e))
            return issues

        if duplicates:
            issues.append(ValidationIssue(
                field="duplicate",
                issue_type="potential_duplicate",
                message=(
                    f"A {tx.type.value} of {tx.amount} around "
                    f"{tx.date:%Y-%m-%d %H:%M} may already exist"
                ),
                severity="warning",
                suggested_fix="Please verify this isn't a duplicate entry",
            ))

        return issues

    def validate(
        self,
        tx: Transaction,
        check_duplicates: bool = True,
        today: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            tx: The transaction to validate
            check_duplicates: Whether to check for duplicates (requires storage)
            today: Reference moment for date checks; defaults to now

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []
        warnings = []
        today = today or datetime.now()

        # Stage 1: Convention validation
        conventions_valid, convention_issues = self._validate_conventions(tx)
        all_issues.extend(convention_issues)

        # Only run stage 2 if stage 1 passes
        sanity_valid = False
        if conventions_valid:
            sanity_valid, sanity_issues = self._validate_sanity(tx, today)
            all_issues.extend(sanity_issues)

            reference_issues = self._check_references(tx)
            all_issues.extend(reference_issues)
            if any(issue.severity == "error" for issue in reference_issues):
                sanity_valid = False

            if check_duplicates:
                all_issues.extend(self._check_duplicates(tx))

        for issue in all_issues:
            if issue.severity == "warning":
                warnings.append(issue.message)

        result = ValidationResult(
            transaction_id=tx.id,
            conventions_valid=conventions_valid,
            sanity_valid=sanity_valid,
            is_valid=conventions_valid and sanity_valid,
            issues=all_issues,
            warnings=warnings,
        )

        logger.debug(
            "transaction_validated",
            transaction_id=str(tx.id),
            is_valid=result.is_valid,
            error_count=result.error_count,
            warning_count=len(warnings),
        )
        return result

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to non-technical users.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ This transaction can't be saved as it is:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
