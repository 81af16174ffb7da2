"""
Ledger Service

Ties a snapshot source to the engine and defines the read flows a
presentation layer needs:
1. Validate a bill before it is saved
2. Break a saved bill down per participant
3. Compute balances for one group or for every group
4. Suggest a settlement plan for a group
5. Summarize a user's balances and focus state

DESIGN DECISION: Scope is always an explicit argument. There is no
"current group" or "current user" held anywhere in the service, so every
call can be reproduced from its arguments and the snapshot alone.

Every call gets a correlation id and its notable events are logged.
"""

from typing import Optional
from uuid import UUID

from prismsplit.config import Settings, get_settings
from prismsplit.engine import (
    InvalidSplitError,
    ScopeMismatchError,
    aggregate,
    compute_balances,
    plan,
    summarize_focus,
    summarize_focus_by_currency,
)
from prismsplit.events import EngineLogger, create_correlation_id
from prismsplit.models.ledger import (
    BalanceSheet,
    BillAggregation,
    FocusSummary,
    GroupBalanceSummary,
    MemberBalance,
    Scope,
    SettlementSuggestion,
)
from prismsplit.models.records import Bill
from prismsplit.models.validation import ValidationResult
from prismsplit.queries import group_summaries, member_balances
from prismsplit.sources import SnapshotSource, SourceError
from prismsplit.validation import BillValidator


class LedgerService:
    """
    Read-side façade over the engine.

    Every method reads a fresh snapshot from the source, so results always
    reflect the latest bills and payments.
    """

    def __init__(
        self,
        source: SnapshotSource,
        settings: Optional[Settings] = None,
        validator: Optional[BillValidator] = None,
        event_logger: Optional[EngineLogger] = None,
    ):
        self._source = source
        self._settings = settings or get_settings()
        self._engine_settings = self._settings.engine
        self._focus_settings = self._settings.focus
        self._validator = validator or BillValidator(self._engine_settings)
        self._events = event_logger or EngineLogger()

    # -------------------------------------------------------------------------
    # Bills
    # -------------------------------------------------------------------------

    def validate_bill(
        self,
        bill: Bill,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Validate a bill against its group before it is persisted.

        Errors in the result should block saving.
        """
        correlation_id = correlation_id or create_correlation_id()
        group = self._source.get_group(bill.group_id)

        result = self._validator.validate(bill, group)
        if result.has_errors:
            self._events.log_validation_failed(
                bill_id=bill.id,
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            )
        return result

    def bill_breakdown(
        self,
        bill_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> BillAggregation:
        """
        Per-participant contributions for a saved bill.

        Orphaned participants are reported on the result and logged.
        """
        correlation_id = correlation_id or create_correlation_id()
        bill = self._source.get_bill(bill_id)
        group = self._source.get_group(bill.group_id)

        try:
            result = aggregate(bill, group=group, settings=self._engine_settings)
        except InvalidSplitError as e:
            self._events.log_split_rejected(
                bill_id=e.bill_id,
                item_id=e.item_id,
                reason=e.reason,
                correlation_id=correlation_id,
            )
            raise

        for orphan in result.orphans:
            self._events.log_orphan(
                bill_id=orphan.bill_id,
                item_id=orphan.item_id,
                user_id=orphan.user_id,
                correlation_id=correlation_id,
            )
        self._events.log_bill_aggregated(
            bill_id=bill.id,
            total=result.total,
            participant_count=len(result.contributions),
            correlation_id=correlation_id,
        )
        return result

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def balances(
        self,
        scope: Scope,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> BalanceSheet:
        """
        Compute balances for Scope.group(id) or Scope.all().

        With Scope.all() and a `user_id`, only the groups that user belongs
        to are covered.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            if scope.is_all:
                groups = self._source.list_groups(user_id)
            else:
                groups = [self._source.get_group(scope.group_id)]
            bills = self._source.list_bills(scope.group_id)
            payments = self._source.list_payments(scope.group_id)
        except SourceError as e:
            self._events.log_source_error(
                operation="balances",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        if scope.is_all and user_id is not None:
            group_ids = {group.id for group in groups}
            bills = [bill for bill in bills if bill.group_id in group_ids]
            payments = [payment for payment in payments if payment.group_id in group_ids]

        try:
            sheet = compute_balances(
                bills,
                payments,
                scope=scope,
                groups=groups,
                settings=self._engine_settings,
            )
        except ScopeMismatchError as e:
            self._events.log_scope_mismatch(
                scope=str(scope),
                record_type=e.record_type,
                record_id=e.record_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
        except InvalidSplitError as e:
            self._events.log_split_rejected(
                bill_id=e.bill_id,
                item_id=e.item_id,
                reason=e.reason,
                correlation_id=correlation_id,
            )
            raise

        self._events.log_balances_computed(
            scope=str(scope),
            bill_count=len(bills),
            payment_count=len(payments),
            currencies=sheet.currencies,
            correlation_id=correlation_id,
        )
        return sheet

    def settlement_plan(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[SettlementSuggestion]:
        """Suggested transfers that would settle a group completely."""
        correlation_id = correlation_id or create_correlation_id()
        sheet = self.balances(Scope.group(group_id), correlation_id=correlation_id)

        suggestions = plan(sheet.groups[group_id])
        self._events.log_settlement_planned(
            group_id=group_id,
            transaction_count=len(suggestions),
            correlation_id=correlation_id,
        )
        return suggestions

    # -------------------------------------------------------------------------
    # Per-user views
    # -------------------------------------------------------------------------

    def member_balances(
        self,
        user_id: str,
        scope: Optional[Scope] = None,
        currency: Optional[str] = None,
    ) -> list[MemberBalance]:
        """What each counterparty owes `user_id` (positive) or is owed."""
        sheet = self.balances(scope or Scope.all(), user_id=user_id)
        return member_balances(sheet, user_id, currency=currency)

    def group_summaries(self, user_id: str) -> list[GroupBalanceSummary]:
        """The user's net balance in each of their groups."""
        groups = self._source.list_groups(user_id)
        sheet = self.balances(Scope.all(), user_id=user_id)
        return group_summaries(sheet, user_id, groups)

    def focus(
        self,
        user_id: str,
        currency: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> FocusSummary:
        """
        Focus state across all groups.

        A user with groups in several currencies gets the state of the
        primary currency unless one is requested; see focus_by_currency.
        """
        correlation_id = correlation_id or create_correlation_id()
        sheet = self.balances(Scope.all(), user_id=user_id, correlation_id=correlation_id)

        summary = summarize_focus(
            sheet,
            user_id,
            currency,
            self._focus_settings,
            default_currency=self._engine_settings.default_currency,
        )
        self._log_focus(summary, correlation_id)
        return summary

    def focus_by_currency(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[FocusSummary]:
        """One focus state per currency the user's groups use."""
        correlation_id = correlation_id or create_correlation_id()
        sheet = self.balances(Scope.all(), user_id=user_id, correlation_id=correlation_id)

        summaries = summarize_focus_by_currency(sheet, user_id, self._focus_settings)
        for summary in summaries:
            self._log_focus(summary, correlation_id)
        return summaries

    def _log_focus(self, summary: FocusSummary, correlation_id: UUID) -> None:
        self._events.log_focus_classified(
            user_id=summary.user_id,
            state=summary.state.value,
            owed=summary.owed,
            owing=summary.owing,
            correlation_id=correlation_id,
        )
