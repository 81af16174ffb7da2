"""
Entry-Time Bill Validation

DESIGN DECISION: Validation happens before a bill is persisted, in two
distinct stages:

STAGE 1 - STRUCTURE:
- The bill belongs to the group it is validated against
- It has items, and every item has participants
- Payer and participants are group members
- No duplicate participants, one split mode per item

STAGE 2 - SPLIT ARITHMETIC:
- Percentages sum to 100 within tolerance
- Custom amounts sum to the item total within tolerance
- Allocation succeeds for every item

IMPORTANT: Validation NEVER fixes anything. It reports, and a bill with
errors should be sent back to the user. The engine's own tolerance only
exists to absorb representation noise, not to mask user error, so drifts
inside tolerance are still surfaced here as warnings.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from prismsplit.config import EngineSettings, get_settings
from prismsplit.engine.allocator import allocate
from prismsplit.engine.errors import InvalidSplitError
from prismsplit.engine.money import format_amount, to_minor
from prismsplit.models.records import Bill, BillItem, Group, SplitMode
from prismsplit.models.validation import ValidationIssue, ValidationResult


class BillValidator:
    """
    Validates a bill against its group through a two-stage pipeline.

    Stage 2 is skipped when stage 1 finds errors.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings or get_settings().engine

    def _validate_structure(
        self,
        bill: Bill,
        group: Group,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Structural validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if bill.group_id != group.id:
            issues.append(ValidationIssue(
                field="group_id",
                issue_type="wrong_group",
                message=f"Bill belongs to group {bill.group_id}, not {group.id}",
                severity="error",
            ))

        if not group.has_member(bill.payer_id):
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="not_member",
                message=f"Payer {bill.payer_id} is not a member of {group.name}",
                severity="error",
                suggested_fix="Choose a payer from the group",
            ))

        if not bill.items:
            issues.append(ValidationIssue(
                field="items",
                issue_type="missing",
                message="A bill needs at least one item",
                severity="error",
                suggested_fix="Add an item, or enter the total as a single item",
            ))

        for index, item in enumerate(bill.items):
            field = f"items[{index}].splits"

            if not item.splits:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"Nobody is splitting '{item.name}'",
                    severity="error",
                    item_id=item.id,
                    suggested_fix="Select at least one person for this item",
                ))
                continue

            participants = item.participant_ids
            if len(set(participants)) != len(participants):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="duplicate",
                    message=f"Someone appears twice on '{item.name}'",
                    severity="error",
                    item_id=item.id,
                ))

            if len({split.mode for split in item.splits}) > 1:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="mixed_modes",
                    message=f"'{item.name}' mixes split modes",
                    severity="error",
                    item_id=item.id,
                    suggested_fix="Use one split mode per item",
                ))

            outsiders = sorted({u for u in participants if not group.has_member(u)})
            if outsiders:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="not_member",
                    message=(
                        f"'{item.name}' is split with non-members: "
                        f"{', '.join(outsiders)}"
                    ),
                    severity="error",
                    item_id=item.id,
                ))

        if bill.bill_date > date.today():
            issues.append(ValidationIssue(
                field="bill_date",
                issue_type="future_date",
                message=f"Bill date ({bill.bill_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _check_item_sums(
        self,
        index: int,
        item: BillItem,
        currency: str,
    ) -> list[ValidationIssue]:
        """Compare percentages / amounts against the item before allocating."""
        issues = []
        field = f"items[{index}].splits"
        mode = item.splits[0].mode

        if mode == SplitMode.PROPORTIONAL:
            total_pct = sum((s.percentage for s in item.splits), Decimal("0"))
            drift = abs(total_pct - Decimal("100"))
            if drift > self._settings.percentage_tolerance:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="sum_mismatch",
                    message=f"Percentages for '{item.name}' add up to {total_pct}%, not 100%",
                    severity="error",
                    item_id=item.id,
                    suggested_fix="Adjust the percentages so they total 100%",
                ))
            elif drift:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="rounding",
                    message=f"Percentages for '{item.name}' add up to {total_pct}%; the difference will be rounded away",
                    severity="warning",
                    item_id=item.id,
                ))

        elif mode == SplitMode.CUSTOM:
            expected = to_minor(item.line_total, currency)
            actual = sum(to_minor(s.amount, currency) for s in item.splits)
            drift = abs(expected - actual)
            if drift > self._settings.amount_tolerance_minor:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="sum_mismatch",
                    message=(
                        f"Amounts for '{item.name}' add up to {format_amount(actual, currency)}, "
                        f"not {format_amount(expected, currency)}"
                    ),
                    severity="error",
                    item_id=item.id,
                    suggested_fix="Adjust the amounts so they match the item price",
                ))
            elif drift:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="rounding",
                    message=f"Amounts for '{item.name}' are off by {format_amount(drift, currency)}; the largest share will absorb it",
                    severity="warning",
                    item_id=item.id,
                ))

        return issues

    def _validate_splits(
        self,
        bill: Bill,
        group: Group,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Split arithmetic.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        for index, item in enumerate(bill.items):
            item_issues = self._check_item_sums(index, item, group.currency)
            issues.extend(item_issues)
            if any(issue.severity == "error" for issue in item_issues):
                continue

            try:
                allocate(
                    item,
                    currency=group.currency,
                    members=group.member_ids,
                    bill_id=bill.id,
                    settings=self._settings,
                )
            except InvalidSplitError as e:
                issues.append(ValidationIssue(
                    field=f"items[{index}].splits",
                    issue_type="invalid_split",
                    message=e.reason,
                    severity="error",
                    item_id=item.id,
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, bill: Bill, group: Group) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Args:
            bill: The bill about to be saved
            group: The group it will be saved into

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        structure_valid, structure_issues = self._validate_structure(bill, group)
        all_issues.extend(structure_issues)

        # Only run stage 2 if stage 1 passes
        splits_valid = False
        if structure_valid:
            splits_valid, split_issues = self._validate_splits(bill, group)
            all_issues.extend(split_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            bill_id=bill.id,
            structure_valid=structure_valid,
            splits_valid=splits_valid,
            is_valid=structure_valid and splits_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Generate a summary of validation results to show the user."""
        if result.is_valid and not result.warnings:
            return "✅ Everything adds up."

        lines = []

        if result.has_errors:
            lines.append("❌ This bill can't be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
