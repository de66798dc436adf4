"""
Tests for the two-stage TransactionValidator.
"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_core.models.entities import Transaction, TransactionType
from finance_core.services.storage import StorageError
from finance_core.validation import TransactionValidator

TODAY = datetime(2024, 6, 15, 12, 0)


def issue_types(result) -> set[str]:
    return {issue.issue_type for issue in result.issues}


class TestConventionValidation:
    """Stage 1: type and sign conventions."""

    def setup_method(self):
        self.validator = TransactionValidator()

    def test_valid_expense(self):
        """A well-formed expense passes cleanly."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=TODAY, from_conto_id=uuid4())
        result = self.validator.validate(tx, today=TODAY)
        assert result.is_valid
        assert result.issues == []

    def test_negative_amount(self):
        """Negative amounts are errors; stage 2 is skipped."""
        tx = Transaction(amount=Decimal("-10"), type=TransactionType.EXPENSE,
                         date=TODAY, from_conto_id=uuid4())
        result = self.validator.validate(tx, today=TODAY)
        assert not result.conventions_valid
        assert not result.sanity_valid
        assert not result.is_valid
        assert result.error_count == 1

    def test_zero_amount_warns(self):
        """Zero is allowed but flagged."""
        tx = Transaction(amount=Decimal("0"), type=TransactionType.INCOME,
                         date=TODAY, to_conto_id=uuid4())
        result = self.validator.validate(tx, today=TODAY)
        assert result.is_valid
        assert result.warnings == ["Amount is zero"]

    def test_income_without_target(self):
        """Income must name the conto it lands in."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.INCOME, date=TODAY)
        result = self.validator.validate(tx, today=TODAY)
        assert not result.is_valid
        assert result.issues[0].field == "to_conto_id"

    def test_income_with_source_is_warning(self):
        """An ignored source leg is reported, not rejected."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.INCOME, date=TODAY,
                         from_conto_id=uuid4(), to_conto_id=uuid4())
        result = self.validator.validate(tx, today=TODAY)
        assert result.is_valid
        assert issue_types(result) == {"ignored_leg"}

    def test_expense_without_source(self):
        """Expenses must name the conto they leave."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=TODAY, to_conto_id=uuid4())
        result = self.validator.validate(tx, today=TODAY)
        assert not result.is_valid
        assert issue_types(result) == {"missing", "ignored_leg"}

    def test_transfer_without_legs(self):
        """A transfer touching nothing is an error."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.TRANSFER, date=TODAY)
        assert not self.validator.validate(tx, today=TODAY).is_valid

    def test_transfer_to_itself(self):
        """Source and destination must differ."""
        conto = uuid4()
        tx = Transaction.transfer(Decimal("10"), conto, conto, date=TODAY)
        result = self.validator.validate(tx, today=TODAY)
        assert not result.is_valid
        assert issue_types(result) == {"invalid_value"}

    def test_one_legged_transfer_is_info(self):
        """External transfers are valid and only noted."""
        tx = Transaction.transfer(Decimal("10"), uuid4(), None, date=TODAY)
        result = self.validator.validate(tx, today=TODAY)
        assert result.is_valid
        assert result.issues[0].severity == "info"
        assert result.warnings == []

    def test_recurring_without_frequency(self):
        """A recurring flag needs a frequency."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE, date=TODAY,
                         from_conto_id=uuid4(), is_recurring=True)
        assert not self.validator.validate(tx, today=TODAY).is_valid

    def test_recurrence_fields_without_flag(self):
        """Recurrence details on a one-off row are flagged."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE, date=TODAY,
                         from_conto_id=uuid4(), recurrence_frequency="monthly")
        result = self.validator.validate(tx, today=TODAY)
        assert result.is_valid
        assert issue_types(result) == {"ignored_field"}

    def test_does_not_mutate(self):
        """Validation never changes the transaction."""
        tx = Transaction(amount=Decimal("-10"), type=TransactionType.INCOME, date=TODAY,
                         from_conto_id=uuid4())
        before = tx.model_dump()
        self.validator.validate(tx, today=TODAY)
        assert tx.model_dump() == before


class TestSanityValidation:
    """Stage 2: suspicious but well-formed data."""

    def setup_method(self):
        self.validator = TransactionValidator()

    def test_far_future_date(self):
        """More than a year ahead is flagged."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=datetime(2025, 7, 1), from_conto_id=uuid4())
        result = self.validator.validate(tx, today=TODAY)
        assert result.is_valid
        assert issue_types(result) == {"future_date"}

    def test_planned_date_within_tolerance(self):
        """A few months ahead is fine."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=datetime(2024, 12, 1), from_conto_id=uuid4())
        assert self.validator.validate(tx, today=TODAY).issues == []

    def test_huge_amount(self):
        """Amounts above the ceiling are flagged."""
        tx = Transaction(amount=Decimal("2000000"), type=TransactionType.INCOME,
                         date=TODAY, to_conto_id=uuid4())
        assert issue_types(self.validator.validate(tx, today=TODAY)) == {"suspicious_value"}

    def test_ceiling_from_settings(self, monkeypatch):
        """The ceiling is configurable."""
        from finance_core.config import get_settings
        monkeypatch.setenv("FINANCE_VALIDATION_MAX_TRANSACTION_AMOUNT", "100")
        get_settings.cache_clear()
        tx = Transaction(amount=Decimal("150"), type=TransactionType.INCOME,
                         date=TODAY, to_conto_id=uuid4())
        assert issue_types(TransactionValidator().validate(tx, today=TODAY)) == {"suspicious_value"}

    def test_recurrence_end_before_start(self):
        """A recurrence that can never repeat is flagged."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE, date=TODAY,
                         from_conto_id=uuid4(), is_recurring=True,
                         recurrence_frequency="monthly",
                         recurrence_end_date=datetime(2024, 1, 1))
        result = self.validator.validate(tx, today=TODAY)
        assert result.is_valid
        assert issue_types(result) == {"inconsistent"}


class TestStorageChecks:
    """Reference and duplicate checks."""

    def test_unknown_conto(self, storage):
        """A leg pointing nowhere makes the transaction invalid."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=TODAY, from_conto_id=uuid4())
        result = TransactionValidator(storage).validate(tx, today=TODAY)
        assert result.conventions_valid
        assert not result.sanity_valid
        assert issue_types(result) == {"unknown_reference"}

    def test_unknown_category_is_warning(self, storage, checking):
        """An unknown category does not block."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE, date=TODAY,
                         from_conto_id=checking.id, category_id=uuid4())
        result = TransactionValidator(storage).validate(tx, today=TODAY)
        assert result.is_valid
        assert issue_types(result) == {"unknown_reference"}

    def test_possible_duplicate(self, storage, checking, add_tx):
        """A near-identical stored transaction is reported."""
        add_tx(10, "expense", TODAY, from_conto=checking)
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=TODAY, from_conto_id=checking.id)
        result = TransactionValidator(storage).validate(tx, today=TODAY)
        assert result.is_valid
        assert issue_types(result) == {"potential_duplicate"}

    def test_duplicate_check_can_be_skipped(self, storage, checking, add_tx):
        """check_duplicates=False skips the lookup."""
        add_tx(10, "expense", TODAY, from_conto=checking)
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=TODAY, from_conto_id=checking.id)
        result = TransactionValidator(storage).validate(tx, check_duplicates=False, today=TODAY)
        assert result.issues == []

    def test_storage_failure_during_duplicate_check(self, storage, checking, monkeypatch):
        """A storage error during the duplicate lookup does not fail validation."""
        def broken(*args, **kwargs):
            raise StorageError("backend unavailable")

        monkeypatch.setattr(storage, "list_transactions", broken)
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=TODAY, from_conto_id=checking.id)
        result = TransactionValidator(storage).validate(tx, today=TODAY)
        assert result.is_valid


class TestUserFriendlySummary:
    """Text shown to users."""

    def setup_method(self):
        self.validator = TransactionValidator()

    def test_all_clear(self):
        """A clean result says so."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE,
                         date=TODAY, from_conto_id=uuid4())
        summary = self.validator.get_user_friendly_summary(self.validator.validate(tx, today=TODAY))
        assert "All checks passed" in summary

    def test_errors_and_fixes(self):
        """Errors are listed with their suggested fixes."""
        tx = Transaction(amount=Decimal("10"), type=TransactionType.EXPENSE, date=TODAY)
        summary = self.validator.get_user_friendly_summary(self.validator.validate(tx, today=TODAY))
        assert "Expense needs a source conto" in summary
        assert "Choose the conto the money leaves from" in summary

    def test_warnings_only(self):
        """Warnings are listed for verification."""
        tx = Transaction(amount=Decimal("0"), type=TransactionType.INCOME,
                         date=TODAY, to_conto_id=uuid4())
        summary = self.validator.get_user_friendly_summary(self.validator.validate(tx, today=TODAY))
        assert "Please verify" in summary
        assert "Amount is zero" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
