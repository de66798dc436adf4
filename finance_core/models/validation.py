"""
Validation result models.

Produced by finance_core.validation.TransactionValidator. Validation
never fixes anything; it only describes what it found.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'ignored_leg')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Convention validation (sign, legs per type, recurrence fields)
    Stage 2: Sanity validation (dates, amounts, duplicates)
    """

    transaction_id: UUID = Field(
        ...,
        description="ID of the transaction being validated"
    )
    validated_at: datetime = Field(
        default_factory=datetime.now
    )

    # Stage results
    conventions_valid: bool = Field(
        ...,
        description="Did convention validation pass?"
    )
    sanity_valid: bool = Field(
        ...,
        description="Did sanity validation pass?"
    )

    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
