"""
Snapshot Source Interface

DESIGN DECISION: The engine does not own storage. It reads records through
this small synchronous interface, which the persistence layer implements.
This allows us to:
1. Keep the engine free of I/O, retries and concurrency handling
2. Use in-memory snapshots for testing
3. Demand one consistent snapshot per computation

Implementations must return every record for the requested scope as of
one point in time. Reconciling concurrent edits is their job, not ours.
"""

from abc import ABC, abstractmethod
from typing import Optional

from prismsplit.models.records import Bill, Group, Payment


class SnapshotSource(ABC):
    """
    Abstract read-only source of groups, bills and payments.

    Any persistence backend (a database, an API client) must implement
    these methods.
    """

    @abstractmethod
    def get_group(self, group_id: str) -> Group:
        """
        Retrieve a group by its ID.

        Raises:
            NotFoundError: If the group doesn't exist
        """
        pass

    @abstractmethod
    def list_groups(self, user_id: Optional[str] = None) -> list[Group]:
        """
        List groups, optionally only those `user_id` belongs to.

        Returns:
            Groups ordered by creation time
        """
        pass

    @abstractmethod
    def list_bills(self, group_id: Optional[str] = None) -> list[Bill]:
        """
        List bills, optionally for a single group.

        Returns:
            Bills ordered by bill date
        """
        pass

    @abstractmethod
    def get_bill(self, bill_id: str) -> Bill:
        """
        Retrieve a bill by its ID.

        Raises:
            NotFoundError: If the bill doesn't exist
        """
        pass

    @abstractmethod
    def list_payments(self, group_id: Optional[str] = None) -> list[Payment]:
        """
        List payments, optionally for a single group.

        Returns:
            Payments ordered by creation time
        """
        pass


class SourceError(Exception):
    """Base exception for snapshot source operations."""
    pass


class NotFoundError(SourceError):
    """Record not found in the source."""
    pass


class DuplicateError(SourceError):
    """Attempted to add a record whose id already exists."""
    pass
