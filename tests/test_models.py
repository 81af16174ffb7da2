"""
Tests for PrismSplit models, settings and event logging

Test strategy:
1. Unit tests for record validation (what the persistence layer may hand us)
2. Unit tests for derived-model helpers
3. No real logging output in tests (use a stub logger)
"""

import logging

import pytest
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from prismsplit.config import EngineSettings, FocusSettings, LoggingSettings, Settings
from prismsplit.events import EngineLogger, configure_logging, create_correlation_id
from prismsplit.models import (
    Bill,
    BillItem,
    EngineEventBuilder,
    EngineEventType,
    EventSeverity,
    ExtraSplitMode,
    Group,
    LedgerView,
    PairBalance,
    Payment,
    Scope,
    Split,
    SplitMode,
    User,
)
from prismsplit.sources import InMemorySnapshotSource, NotFoundError


class TestRecordModels:
    """Tests for input record validation."""

    def test_user_color_range(self):
        """Avatar colors are slots 0-5."""
        assert User(full_name="Alice", color_index=5).color_index == 5
        with pytest.raises(ValidationError):
            User(full_name="Alice", color_index=6)

    def test_group_currency_normalized(self):
        """Currency codes are upper-cased."""
        group = Group(name="Flat", currency=" eur ")
        assert group.currency == "EUR"

    def test_group_invalid_currency(self):
        with pytest.raises(ValidationError):
            Group(name="Flat", currency="EURO")

    def test_group_creator_first(self):
        """The creator is always the first member."""
        with pytest.raises(ValidationError, match="first member"):
            Group(name="Flat", created_by="bob", member_ids=["alice", "bob"])

    def test_group_unique_members(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            Group(name="Flat", member_ids=["alice", "alice"])

    def test_split_mode_fields(self):
        """Proportional splits need a percentage, custom splits an amount."""
        with pytest.raises(ValidationError):
            Split(user_id="alice", mode=SplitMode.PROPORTIONAL)
        with pytest.raises(ValidationError):
            Split(user_id="alice", mode=SplitMode.CUSTOM)
        assert Split(user_id="alice").mode == SplitMode.EQUAL

    def test_item_line_total(self):
        """price x quantity - discount."""
        item = BillItem(name="Beer", price=Decimal("4.50"), quantity=4, discount=Decimal("2"))
        assert item.line_total == Decimal("16.00")

    def test_item_discount_capped(self):
        with pytest.raises(ValidationError, match="discount"):
            BillItem(name="Beer", price=Decimal("4.50"), discount=Decimal("5"))

    def test_item_price_positive(self):
        with pytest.raises(ValidationError):
            BillItem(name="Free", price=Decimal("0"))

    def test_bill_totals(self):
        """Total = subtotal - discount + tax + tip."""
        bill = Bill(
            group_id="g1",
            payer_id="alice",
            items=[
                BillItem(name="A", price=Decimal("10"), splits=[Split(user_id="alice")]),
                BillItem(name="B", price=Decimal("5"), quantity=2, splits=[Split(user_id="bob")]),
            ],
            tax_amount=Decimal("1.50"),
            tip_amount=Decimal("2"),
            discount_amount=Decimal("3"),
        )
        assert bill.subtotal == Decimal("20")
        assert bill.total == Decimal("20.50")
        assert bill.participant_ids == ["alice", "bob"]
        assert bill.tax_split_mode == ExtraSplitMode.PROPORTIONAL

    def test_bill_discount_capped(self):
        with pytest.raises(ValidationError, match="subtotal"):
            Bill(
                group_id="g1",
                payer_id="alice",
                items=[BillItem(name="A", price=Decimal("10"))],
                discount_amount=Decimal("11"),
            )

    def test_payment_needs_two_users(self):
        with pytest.raises(ValidationError, match="two different users"):
            Payment(group_id="g1", from_user="alice", to_user="alice", amount=Decimal("5"))

    def test_payment_amount_positive(self):
        with pytest.raises(ValidationError):
            Payment(group_id="g1", from_user="alice", to_user="bob", amount=Decimal("0"))

    def test_records_are_frozen(self):
        """Snapshots cannot change underneath a computation."""
        payment = Payment(group_id="g1", from_user="alice", to_user="bob", amount=Decimal("5"))
        with pytest.raises(ValidationError):
            payment.amount = Decimal("6")


class TestLedgerModels:
    """Tests for derived-model helpers."""

    def test_scope(self):
        assert Scope.all().is_all
        assert str(Scope.all()) == "all"
        assert str(Scope.group("g1")) == "group:g1"
        assert Scope.group("g1").covers("g1")
        assert not Scope.group("g1").covers("g2")

    def test_view_balance_missing_pair(self):
        """Users with no shared bills owe each other nothing."""
        view = LedgerView(
            currency="USD",
            pairs=[PairBalance(user_a="alice", user_b="bob", amount=250)],
            per_user={"alice": -250, "bob": 250, "carol": 0},
        )
        assert view.balance("alice", "carol") == 0
        assert view.balance("alice", "alice") == 0
        assert view.users == ["alice", "bob", "carol"]
        assert not view.is_settled


class TestSettings:
    """Tests for configuration."""

    def test_engine_defaults(self):
        settings = EngineSettings()
        assert settings.amount_tolerance_minor == 1
        assert settings.percentage_tolerance == Decimal("0.01")
        assert settings.default_currency == "USD"

    def test_engine_from_env(self, monkeypatch):
        """Tolerances can be adjusted per region through the environment."""
        monkeypatch.setenv("PRISMSPLIT_AMOUNT_TOLERANCE_MINOR", "0")
        monkeypatch.setenv("PRISMSPLIT_DEFAULT_CURRENCY", "inr")
        settings = Settings().engine
        assert settings.amount_tolerance_minor == 0
        assert settings.default_currency == "INR"

    def test_focus_from_env(self, monkeypatch):
        monkeypatch.setenv("PRISMSPLIT_FOCUS_THRESHOLD", "50")
        assert FocusSettings().threshold == Decimal("50")

    def test_log_level_validated(self):
        assert LoggingSettings(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingSettings(level="verbose")


class TestLoggingSetup:
    """Tests for structlog configuration."""

    def test_root_logger_untouched(self):
        """Only the package logger's level is set; the host keeps its handlers."""
        root = logging.getLogger()
        handlers_before = list(root.handlers)
        level_before = root.level

        configure_logging(LoggingSettings(level="DEBUG"))
        try:
            assert root.handlers == handlers_before
            assert root.level == level_before
            assert logging.getLogger("prismsplit").level == logging.DEBUG
        finally:
            configure_logging(LoggingSettings())


class TestEngineEvents:
    """Tests for event building and routing."""

    def test_event_log_dict(self):
        correlation_id = create_correlation_id()
        event = EngineEventBuilder.orphan_participant("b1", "i1", "dave", correlation_id)
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "orphan_participant"
        assert log_dict["severity"] == "warning"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"] == {"item_id": "i1", "user_id": "dave"}

    def test_split_rejected_event(self):
        event = EngineEventBuilder.split_rejected("b1", "i1", "Percentages must sum to 100")
        assert event.event_type == EngineEventType.SPLIT_REJECTED
        assert event.error_code == "invalid_split"
        assert event.entity_id == "i1"

    def test_logger_routes_by_severity(self):
        """Each severity goes to the matching log method."""
        calls = []

        class StubLogger:
            def __getattr__(self, level):
                return lambda event, **kwargs: calls.append((level, kwargs["severity"]))

        events = EngineLogger(StubLogger())
        events.log_source_error("list_bills", "timeout", uuid4())
        events.log_orphan("b1", None, "dave")
        events.log_balances_computed("all", 2, 1, ["USD"])
        events.log_focus_classified("alice", "zen", 0, 0)

        assert calls == [
            ("error", EventSeverity.ERROR.value),
            ("warning", EventSeverity.WARNING.value),
            ("info", EventSeverity.INFO.value),
            ("debug", EventSeverity.DEBUG.value),
        ]


class TestInMemorySource:
    """Tests for the in-memory snapshot source."""

    def test_delete_group_cascades(self):
        group = Group(id="g1", name="Flat", created_by="alice", member_ids=["alice", "bob"])
        bill = Bill(
            group_id="g1",
            payer_id="alice",
            items=[BillItem(name="A", price=Decimal("10"), splits=[Split(user_id="bob")])],
        )
        payment = Payment(group_id="g1", from_user="bob", to_user="alice", amount=Decimal("5"))
        source = InMemorySnapshotSource([group], [bill], [payment])

        source.delete_group("g1")
        assert source.list_bills() == []
        assert source.list_payments() == []
        with pytest.raises(NotFoundError):
            source.get_group("g1")

    def test_list_groups_for_user(self):
        source = InMemorySnapshotSource([
            Group(id="g1", name="Flat", member_ids=["alice", "bob"]),
            Group(id="g2", name="Trip", member_ids=["bob"]),
        ])
        assert [g.id for g in source.list_groups("alice")] == ["g1"]
        assert [g.id for g in source.list_groups()] == ["g1", "g2"]

    def test_bill_replaced_on_edit(self):
        item = BillItem(name="A", price=Decimal("10"), splits=[Split(user_id="bob")])
        bill = Bill(id="b1", group_id="g1", payer_id="alice", items=[item])
        source = InMemorySnapshotSource(bills=[bill])
        source.put_bill(bill.model_copy(update={"title": "Edited"}))
        assert source.get_bill("b1").title == "Edited"
        source.delete_bill("b1")
        with pytest.raises(NotFoundError):
            source.delete_bill("b1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
