"""
Engine Event Logger

Structured logging for the engine. Two entry points:
- get_logger(name): plain structlog logger for module-level debug lines
- EngineLogger: logs EngineEvent records at the level their severity implies

The engine is synchronous and side-effect free apart from these log lines.
Nothing here is persisted; callers wanting a history wire a structlog
processor or a stdlib handler of their own. Output goes wherever the
application points the stdlib `prismsplit` logger.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from prismsplit.config import LoggingSettings, get_settings
from prismsplit.models.events import EngineEvent, EngineEventBuilder, EventSeverity


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Configure structlog and the level of the `prismsplit` stdlib logger."""
    settings = settings or get_settings().logging

    # Only the package's own logger is touched; handlers belong to the application.
    logging.getLogger("prismsplit").setLevel(getattr(logging, settings.level))

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


class EngineLogger:
    """
    Central event logging service.

    Usage:
        events = EngineLogger()
        events.log_orphan(bill_id, item_id, user_id, correlation_id)
    """

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("prismsplit.events")

    def log(self, event: EngineEvent) -> None:
        """Log an engine event at the level implied by its severity."""
        log_dict = event.to_log_dict()

        if event.severity == EventSeverity.ERROR:
            self._logger.error("engine_event", **log_dict)
        elif event.severity == EventSeverity.WARNING:
            self._logger.warning("engine_event", **log_dict)
        elif event.severity == EventSeverity.DEBUG:
            self._logger.debug("engine_event", **log_dict)
        else:
            self._logger.info("engine_event", **log_dict)

    def log_split_rejected(
        self,
        bill_id: Optional[str],
        item_id: Optional[str],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.split_rejected(
            bill_id=bill_id,
            item_id=item_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_bill_aggregated(
        self,
        bill_id: str,
        total: int,
        participant_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.bill_aggregated(
            bill_id=bill_id,
            total=total,
            participant_count=participant_count,
            correlation_id=correlation_id,
        ))

    def log_orphan(
        self,
        bill_id: str,
        item_id: Optional[str],
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a split naming a user who has left the group."""
        self.log(EngineEventBuilder.orphan_participant(
            bill_id=bill_id,
            item_id=item_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        bill_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.bill_validation_failed(
            bill_id=bill_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_balances_computed(
        self,
        scope: str,
        bill_count: int,
        payment_count: int,
        currencies: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.balances_computed(
            scope=scope,
            bill_count=bill_count,
            payment_count=payment_count,
            currencies=currencies,
            correlation_id=correlation_id,
        ))

    def log_scope_mismatch(
        self,
        scope: str,
        record_type: str,
        record_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.scope_mismatch(
            scope=scope,
            record_type=record_type,
            record_id=record_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_settlement_planned(
        self,
        group_id: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.settlement_planned(
            group_id=group_id,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))

    def log_focus_classified(
        self,
        user_id: str,
        state: str,
        owed: int,
        owing: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.focus_classified(
            user_id=user_id,
            state=state,
            owed=owed,
            owing=owing,
            correlation_id=correlation_id,
        ))

    def log_source_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(EngineEventBuilder.source_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a service call and pass it through every
    event that call produces.
    """
    return uuid4()
