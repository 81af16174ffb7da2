"""
Engine Exceptions

Every error carries enough context (bill id, item id, offending sum) for
the caller to render a precise message. The engine never retries and never
drops a record to make a computation succeed.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for engine errors."""
    pass


class InvalidSplitError(LedgerError):
    """
    An item's splits do not reconcile with its price beyond tolerance,
    or its participant set is empty or invalid.
    """

    def __init__(
        self,
        reason: str,
        bill_id: Optional[str] = None,
        item_id: Optional[str] = None,
        expected: Optional[object] = None,
        actual: Optional[object] = None,
    ):
        self.reason = reason
        self.bill_id = bill_id
        self.item_id = item_id
        self.expected = expected
        self.actual = actual

        context = []
        if bill_id:
            context.append(f"bill={bill_id}")
        if item_id:
            context.append(f"item={item_id}")
        if expected is not None or actual is not None:
            context.append(f"expected={expected} actual={actual}")
        message = reason if not context else f"{reason} ({', '.join(context)})"
        super().__init__(message)


class OrphanParticipantError(LedgerError):
    """
    A split references a user outside the group's current members.

    Non-fatal by default: the aggregator reports it and keeps computing
    with the historical split.
    """

    def __init__(self, user_id: str, bill_id: str, item_id: Optional[str] = None):
        self.user_id = user_id
        self.bill_id = bill_id
        self.item_id = item_id
        where = f"item {item_id} of bill {bill_id}" if item_id else f"bill {bill_id}"
        super().__init__(f"User {user_id} on {where} is not a group member")


class ScopeMismatchError(LedgerError):
    """A bill or payment falls outside the requested computation scope."""

    def __init__(self, record_type: str, record_id: str, expected: str, actual: str):
        self.record_type = record_type
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{record_type.capitalize()} {record_id} references {actual}, "
            f"outside scope {expected}"
        )


class AmbiguousCurrencyError(LedgerError):
    """A single-currency view was requested from a sheet holding several."""

    def __init__(self, scope: str, currencies: list[str]):
        self.scope = scope
        self.currencies = currencies
        super().__init__(
            f"Balances for scope {scope} are held in {', '.join(currencies)}; "
            f"choose one currency"
        )
