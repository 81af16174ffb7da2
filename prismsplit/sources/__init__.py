"""
Snapshot Sources Package

Provides the read interface the engine consumes records through, plus an
in-memory implementation.
"""

from prismsplit.sources.interface import (
    DuplicateError,
    NotFoundError,
    SnapshotSource,
    SourceError,
)
from prismsplit.sources.memory import InMemorySnapshotSource

__all__ = [
    # Interface
    "SnapshotSource",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "SourceError",
    # In-memory implementation
    "InMemorySnapshotSource",
]
