"""
In-Memory Snapshot Source

Holds records in plain dicts. Used by tests and by callers that already
have a full snapshot loaded (for example, a response from the backend).

Bills are replaced wholesale on edit and payments are append-only, which
mirrors how the persistence layer treats them.
"""

from typing import Iterable, Optional

from prismsplit.events.logger import get_logger
from prismsplit.models.records import Bill, Group, Payment
from prismsplit.sources.interface import DuplicateError, NotFoundError, SnapshotSource

logger = get_logger(__name__)


class InMemorySnapshotSource(SnapshotSource):
    """Snapshot source backed by dictionaries."""

    def __init__(
        self,
        groups: Iterable[Group] = (),
        bills: Iterable[Bill] = (),
        payments: Iterable[Payment] = (),
    ):
        self._groups: dict[str, Group] = {}
        self._bills: dict[str, Bill] = {}
        self._payments: dict[str, Payment] = {}

        for group in groups:
            self.put_group(group)
        for bill in bills:
            self.put_bill(bill)
        for payment in payments:
            self.add_payment(payment)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def put_group(self, group: Group) -> None:
        """Insert or replace a group."""
        self._groups[group.id] = group

    def delete_group(self, group_id: str) -> None:
        """Delete a group together with its bills and payments."""
        if group_id not in self._groups:
            raise NotFoundError(f"Group not found: {group_id}")
        del self._groups[group_id]
        self._bills = {k: b for k, b in self._bills.items() if b.group_id != group_id}
        self._payments = {k: p for k, p in self._payments.items() if p.group_id != group_id}
        logger.info("group_deleted", group_id=group_id)

    def put_bill(self, bill: Bill) -> None:
        """Insert a bill, or replace an edited one."""
        self._bills[bill.id] = bill

    def delete_bill(self, bill_id: str) -> None:
        if bill_id not in self._bills:
            raise NotFoundError(f"Bill not found: {bill_id}")
        del self._bills[bill_id]

    def add_payment(self, payment: Payment) -> None:
        """Append a payment. Payments are never replaced."""
        if payment.id in self._payments:
            raise DuplicateError(f"Payment already recorded: {payment.id}")
        self._payments[payment.id] = payment

    # -------------------------------------------------------------------------
    # SnapshotSource
    # -------------------------------------------------------------------------

    def get_group(self, group_id: str) -> Group:
        try:
            return self._groups[group_id]
        except KeyError:
            raise NotFoundError(f"Group not found: {group_id}") from None

    def list_groups(self, user_id: Optional[str] = None) -> list[Group]:
        groups = [
            g for g in self._groups.values()
            if user_id is None or g.has_member(user_id)
        ]
        return sorted(groups, key=lambda g: (g.created_at, g.id))

    def list_bills(self, group_id: Optional[str] = None) -> list[Bill]:
        bills = [
            b for b in self._bills.values()
            if group_id is None or b.group_id == group_id
        ]
        return sorted(bills, key=lambda b: (b.bill_date, b.created_at, b.id))

    def get_bill(self, bill_id: str) -> Bill:
        try:
            return self._bills[bill_id]
        except KeyError:
            raise NotFoundError(f"Bill not found: {bill_id}") from None

    def list_payments(self, group_id: Optional[str] = None) -> list[Payment]:
        payments = [
            p for p in self._payments.values()
            if group_id is None or p.group_id == group_id
        ]
        return sorted(payments, key=lambda p: (p.created_at, p.id))
