"""
Tests for the split allocator.

Every allocation must sum to the item's line total exactly, in minor
units, for every mode.
"""

import pytest
from decimal import Decimal

from prismsplit.config import EngineSettings
from prismsplit.engine import (
    InvalidSplitError,
    allocate,
    split_by_weights,
    split_custom,
    split_equal,
    split_proportional,
)
from prismsplit.models import BillItem, Split, SplitMode


def amounts(allocations):
    return {a.user_id: a.amount for a in allocations}


class TestEqualSplit:
    """Tests for equal splits."""

    def test_ten_dollars_three_ways(self):
        """10.00 among three users gives 334/333/333."""
        result = split_equal(1000, ["carol", "alice", "bob"])
        assert amounts(result) == {"alice": 334, "bob": 333, "carol": 333}
        assert sum(a.amount for a in result) == 1000

    def test_remainder_goes_to_lowest_ids(self):
        """Leftover units go one at a time in ascending user-id order."""
        result = split_equal(1002, ["d", "c", "b", "a"])
        assert [a.user_id for a in result] == ["a", "b", "c", "d"]
        assert [a.amount for a in result] == [251, 251, 250, 250]

    def test_deterministic(self):
        """Same input, same output, regardless of participant order."""
        assert split_equal(701, ["x", "y", "z"]) == split_equal(701, ["z", "x", "y"])

    def test_empty_participants_rejected(self):
        """An item needs at least one participant."""
        with pytest.raises(InvalidSplitError, match="no participants"):
            split_equal(1000, [])

    def test_duplicate_participants_rejected(self):
        """A user cannot take two equal shares."""
        with pytest.raises(InvalidSplitError, match="Duplicate"):
            split_equal(1000, ["alice", "alice"])

    def test_sum_is_exact_for_many_combinations(self):
        """Sums are exact for awkward prices and group sizes."""
        users = ["u1", "u2", "u3", "u4", "u5", "u6", "u7"]
        for total in (1, 2, 99, 100, 101, 997, 1000, 12345):
            for n in range(1, len(users) + 1):
                result = split_equal(total, users[:n])
                assert sum(a.amount for a in result) == total
                assert max(a.amount for a in result) - min(a.amount for a in result) <= 1


class TestProportionalSplit:
    """Tests for percentage splits and largest-remainder rounding."""

    def test_fifty_dollars_by_thirds(self):
        """33.33/33.33/33.34 of 50.00 reconciles to exactly 5000."""
        result = split_proportional(5000, {
            "alice": Decimal("33.33"),
            "bob": Decimal("33.33"),
            "carol": Decimal("33.34"),
        })
        assert amounts(result) == {"alice": 1667, "bob": 1666, "carol": 1667}
        assert sum(a.amount for a in result) == 5000

    def test_simple_percentages(self):
        """70/30 of 30.00."""
        result = split_proportional(3000, {"alice": Decimal("70"), "bob": Decimal("30")})
        assert amounts(result) == {"alice": 2100, "bob": 900}

    def test_within_tolerance_is_accepted(self):
        """Percentages 0.005 points short of 100 are normalized."""
        result = split_proportional(1000, {"a": Decimal("50"), "b": Decimal("49.995")})
        assert sum(a.amount for a in result) == 1000

    def test_beyond_tolerance_is_rejected(self):
        """Percentages summing to 99.98 are a user error."""
        with pytest.raises(InvalidSplitError, match="sum to 100") as exc_info:
            split_proportional(1000, {"a": Decimal("50"), "b": Decimal("49.98")})
        assert exc_info.value.actual == Decimal("99.98")

    def test_configurable_tolerance(self):
        """A wider tolerance lets a larger drift through."""
        result = split_proportional(
            1000,
            {"a": Decimal("50"), "b": Decimal("49.9")},
            tolerance=Decimal("0.5"),
        )
        assert sum(a.amount for a in result) == 1000


class TestWeightedSplit:
    """Tests for the shared largest-remainder helper."""

    def test_ties_go_to_lower_id(self):
        """Equal fractional remainders favour the lower user id."""
        result = split_by_weights(101, {"b": Decimal(1), "a": Decimal(1)})
        assert amounts(result) == {"a": 51, "b": 50}

    def test_negative_total(self):
        """Negative totals (discounts) round by magnitude."""
        result = split_by_weights(-101, {"a": Decimal(1), "b": Decimal(1)})
        assert amounts(result) == {"a": -51, "b": -50}

    def test_zero_weights_rejected(self):
        """All-zero weights cannot be allocated."""
        with pytest.raises(InvalidSplitError, match="all zero"):
            split_by_weights(100, {"a": Decimal(0), "b": Decimal(0)})


class TestCustomSplit:
    """Tests for explicit amounts."""

    def test_exact_amounts_kept(self):
        """Amounts that match the total are returned untouched."""
        result = split_custom(1000, {"alice": 600, "bob": 400})
        assert amounts(result) == {"alice": 600, "bob": 400}

    def test_one_unit_drift_absorbed_by_largest(self):
        """A one-cent gap is added to the largest split."""
        result = split_custom(1000, {"alice": 500, "bob": 499, "carol": 0})
        assert amounts(result) == {"alice": 501, "bob": 499, "carol": 0}

    def test_one_unit_excess_taken_from_largest(self):
        """A one-cent excess is taken from the largest split."""
        result = split_custom(1000, {"alice": 300, "bob": 701})
        assert amounts(result) == {"alice": 300, "bob": 700}

    def test_largest_tie_goes_to_lower_id(self):
        """When two splits tie for largest, the lower id absorbs the drift."""
        result = split_custom(1001, {"bob": 500, "alice": 500})
        assert amounts(result) == {"alice": 501, "bob": 500}

    def test_drift_beyond_tolerance_rejected(self):
        """A two-cent gap is reported with the offending sum."""
        with pytest.raises(InvalidSplitError) as exc_info:
            split_custom(1000, {"alice": 500, "bob": 498})
        assert exc_info.value.expected == 1000
        assert exc_info.value.actual == 998


class TestAllocate:
    """Tests for allocating a BillItem."""

    def test_equal_item(self, make_item):
        """Equal item split."""
        item = make_item("10.00", ["alice", "bob", "carol"])
        assert amounts(allocate(item)) == {"alice": 334, "bob": 333, "carol": 333}

    def test_quantity_and_discount(self, make_item):
        """Line total is price x quantity - discount."""
        item = make_item("2.50", ["alice", "bob"], quantity=3, discount="0.50")
        assert amounts(allocate(item)) == {"alice": 350, "bob": 350}

    def test_proportional_item(self, make_item):
        """Proportional item split."""
        item = make_item(
            "50.00", ["alice", "bob", "carol"],
            mode=SplitMode.PROPORTIONAL, values=["33.33", "33.33", "33.34"],
        )
        assert sum(a.amount for a in allocate(item)) == 5000

    def test_custom_item(self, make_item):
        """Custom amounts in major units are converted to minor units."""
        item = make_item(
            "12.00", ["alice", "bob"],
            mode=SplitMode.CUSTOM, values=["7.50", "4.50"],
        )
        assert amounts(allocate(item)) == {"alice": 750, "bob": 450}

    def test_zero_decimal_currency(self, make_item):
        """Yen have no minor unit."""
        item = make_item("1000", ["a", "b", "c"])
        assert amounts(allocate(item, currency="JPY")) == {"a": 334, "b": 333, "c": 333}

    def test_item_without_splits(self):
        """Items with no splits are rejected with item context."""
        item = BillItem(id="i1", name="Ghost", price=Decimal("5"))
        with pytest.raises(InvalidSplitError) as exc_info:
            allocate(item, bill_id="b1")
        assert exc_info.value.item_id == "i1"
        assert exc_info.value.bill_id == "b1"

    def test_mixed_modes_rejected(self):
        """All splits of an item share one mode."""
        item = BillItem(
            name="Pizza",
            price=Decimal("20"),
            splits=[
                Split(user_id="alice"),
                Split(user_id="bob", mode=SplitMode.CUSTOM, amount=Decimal("10")),
            ],
        )
        with pytest.raises(InvalidSplitError, match="Mixed split modes"):
            allocate(item)

    def test_non_member_rejected(self, make_item):
        """Participants must belong to the group when members are given."""
        item = make_item("9.00", ["alice", "mallory"])
        with pytest.raises(InvalidSplitError, match="mallory"):
            allocate(item, members=["alice", "bob"])

    def test_settings_tolerance_used(self, make_item):
        """Custom drift tolerance comes from the supplied settings."""
        item = make_item(
            "10.00", ["alice", "bob"],
            mode=SplitMode.CUSTOM, values=["5.00", "4.98"],
        )
        with pytest.raises(InvalidSplitError):
            allocate(item)
        result = allocate(item, settings=EngineSettings(amount_tolerance_minor=2))
        assert amounts(result) == {"alice": 502, "bob": 498}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
