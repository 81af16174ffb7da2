"""
Splitting and balance engine.

Pure, synchronous functions over immutable record snapshots:
allocate -> aggregate -> compute_balances -> plan / summarize_focus.
"""

from prismsplit.engine.aggregator import aggregate, find_orphans
from prismsplit.engine.allocator import (
    allocate,
    split_by_weights,
    split_custom,
    split_equal,
    split_proportional,
)
from prismsplit.engine.errors import (
    AmbiguousCurrencyError,
    InvalidSplitError,
    LedgerError,
    OrphanParticipantError,
    ScopeMismatchError,
)
from prismsplit.engine.focus import classify, summarize_focus, summarize_focus_by_currency
from prismsplit.engine.ledger import compute_balances, resolve_view
from prismsplit.engine.money import (
    currency_exponent,
    format_amount,
    to_major,
    to_minor,
)
from prismsplit.engine.planner import apply_plan, plan

__all__ = [
    # Split allocator
    "allocate",
    "split_by_weights",
    "split_custom",
    "split_equal",
    "split_proportional",
    # Bill aggregator
    "aggregate",
    "find_orphans",
    # Balance ledger
    "compute_balances",
    "resolve_view",
    # Settlement planner
    "apply_plan",
    "plan",
    # Focus classifier
    "classify",
    "summarize_focus",
    "summarize_focus_by_currency",
    # Money
    "currency_exponent",
    "format_amount",
    "to_major",
    "to_minor",
    # Exceptions
    "AmbiguousCurrencyError",
    "InvalidSplitError",
    "LedgerError",
    "OrphanParticipantError",
    "ScopeMismatchError",
]
