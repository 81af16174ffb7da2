"""Engine event logging package."""

from prismsplit.events.logger import (
    EngineLogger,
    configure_logging,
    create_correlation_id,
    get_logger,
)

__all__ = ["EngineLogger", "configure_logging", "create_correlation_id", "get_logger"]
