"""
Data Models Package

Pydantic models for the records the engine consumes, the results it
derives, and the events it logs.
"""

from prismsplit.models.records import (
    Bill,
    BillItem,
    Category,
    ExtraSplitMode,
    Group,
    Payment,
    Split,
    SplitMode,
    User,
    new_id,
)
from prismsplit.models.ledger import (
    Allocation,
    BalanceSheet,
    BillAggregation,
    Contribution,
    FocusState,
    FocusSummary,
    GroupBalanceSummary,
    LedgerView,
    MemberBalance,
    OrphanReport,
    PairBalance,
    Scope,
    SettlementSuggestion,
)
from prismsplit.models.events import (
    EngineEvent,
    EngineEventBuilder,
    EngineEventType,
    EventSeverity,
)
from prismsplit.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Records
    "Bill",
    "BillItem",
    "Category",
    "ExtraSplitMode",
    "Group",
    "Payment",
    "Split",
    "SplitMode",
    "User",
    "new_id",
    # Derived results
    "Allocation",
    "BalanceSheet",
    "BillAggregation",
    "Contribution",
    "FocusState",
    "FocusSummary",
    "GroupBalanceSummary",
    "LedgerView",
    "MemberBalance",
    "OrphanReport",
    "PairBalance",
    "Scope",
    "SettlementSuggestion",
    # Events
    "EngineEvent",
    "EngineEventBuilder",
    "EngineEventType",
    "EventSeverity",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
