"""
Engine Event Models

Notable occurrences inside the engine are described as events so they can
be logged with consistent structure. This provides:
1. Debugging information when a balance looks wrong
2. A precise record of which bill, item or sum caused a rejection
3. Correlation of all events produced by one service call

DESIGN DECISION: Events are only logged, never stored. Recomputing balances
from bills and payments is the source of truth, not an event history.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class EngineEventType(str, Enum):
    """Types of events the engine reports."""
    # Splits
    SPLIT_ALLOCATED = "split_allocated"
    SPLIT_REJECTED = "split_rejected"

    # Bills
    BILL_AGGREGATED = "bill_aggregated"
    ORPHAN_PARTICIPANT = "orphan_participant"
    BILL_VALIDATION_FAILED = "bill_validation_failed"

    # Balances
    BALANCES_COMPUTED = "balances_computed"
    SCOPE_MISMATCH = "scope_mismatch"

    # Derived views
    SETTLEMENT_PLANNED = "settlement_planned"
    FOCUS_CLASSIFIED = "focus_classified"

    # System events
    SOURCE_ERROR = "source_error"


class EventSeverity(str, Enum):
    """Severity level for engine events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class EngineEvent(BaseModel):
    """A single engine event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: EngineEventType
    severity: EventSeverity = EventSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'bill', 'group', 'user')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Groups the events of one service call"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class EngineEventBuilder:
    """
    Helper class to build engine events with common patterns.

    Usage:
        event = EngineEventBuilder.bill_aggregated(bill_id, total, 3, correlation_id)
    """

    @staticmethod
    def split_rejected(
        bill_id: Optional[str],
        item_id: Optional[str],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.SPLIT_REJECTED,
            severity=EventSeverity.WARNING,
            entity_type="bill_item",
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Split rejected: {reason}"[:500],
            details={"bill_id": bill_id, "item_id": item_id},
            error_code="invalid_split",
            error_message=reason,
        )

    @staticmethod
    def bill_aggregated(
        bill_id: str,
        total: int,
        participant_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.BILL_AGGREGATED,
            severity=EventSeverity.DEBUG,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Bill aggregated across {participant_count} participants",
            details={
                "total_minor": total,
                "participant_count": participant_count,
            },
        )

    @staticmethod
    def orphan_participant(
        bill_id: str,
        item_id: Optional[str],
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.ORPHAN_PARTICIPANT,
            severity=EventSeverity.WARNING,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Split references non-member {user_id}",
            details={"item_id": item_id, "user_id": user_id},
        )

    @staticmethod
    def bill_validation_failed(
        bill_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.BILL_VALIDATION_FAILED,
            severity=EventSeverity.WARNING,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Bill validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def balances_computed(
        scope: str,
        bill_count: int,
        payment_count: int,
        currencies: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.BALANCES_COMPUTED,
            entity_type="scope",
            entity_id=scope,
            correlation_id=correlation_id,
            description=f"Balances computed from {bill_count} bills and {payment_count} payments",
            details={
                "bill_count": bill_count,
                "payment_count": payment_count,
                "currencies": currencies,
            },
        )

    @staticmethod
    def scope_mismatch(
        scope: str,
        record_type: str,
        record_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.SCOPE_MISMATCH,
            severity=EventSeverity.ERROR,
            entity_type=record_type,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"{record_type.capitalize()} outside scope {scope}",
            details={"scope": scope},
            error_code="scope_mismatch",
            error_message=error_message,
        )

    @staticmethod
    def settlement_planned(
        group_id: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.SETTLEMENT_PLANNED,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Settlement plan with {transaction_count} transactions",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def focus_classified(
        user_id: str,
        state: str,
        owed: int,
        owing: int,
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.FOCUS_CLASSIFIED,
            severity=EventSeverity.DEBUG,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Focus state: {state}",
            details={"owed_minor": owed, "owing_minor": owing},
        )

    @staticmethod
    def source_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> EngineEvent:
        return EngineEvent(
            event_type=EngineEventType.SOURCE_ERROR,
            severity=EventSeverity.ERROR,
            description=f"Snapshot source error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
