"""
Validation result models.

Produced by the entry-time bill validator; the engine itself raises
exceptions instead.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue (e.g., 'payer_id', 'items[2].splits')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_member', 'sum_mismatch')"
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
    item_id: Optional[str] = None
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage bill validation.

    Stage 1: Structure (items present, payer and participants are members)
    Stage 2: Split arithmetic (percentages and amounts reconcile)
    """

    bill_id: str
    validated_at: datetime = Field(default_factory=datetime.utcnow)

    structure_valid: bool
    splits_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
