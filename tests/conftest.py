"""
Shared record builders for the test suite.

Amounts are given as strings in major units, the way the persistence layer
hands them over.
"""

from decimal import Decimal

import pytest

from prismsplit.models import Bill, BillItem, Group, Payment, Split, SplitMode


@pytest.fixture
def make_group():
    def _make_group(members=("alice", "bob", "carol"), group_id="g1", currency="USD", name="Flat"):
        return Group(
            id=group_id,
            name=name,
            currency=currency,
            created_by=members[0] if members else None,
            member_ids=list(members),
        )
    return _make_group


@pytest.fixture
def make_item():
    def _make_item(price, users, mode=SplitMode.EQUAL, values=None, quantity=1,
                   discount="0", item_id=None, name="Item"):
        splits = []
        for i, user_id in enumerate(users):
            if mode == SplitMode.PROPORTIONAL:
                splits.append(Split(user_id=user_id, mode=mode, percentage=Decimal(values[i])))
            elif mode == SplitMode.CUSTOM:
                splits.append(Split(user_id=user_id, mode=mode, amount=Decimal(values[i])))
            else:
                splits.append(Split(user_id=user_id))
        kwargs = {"id": item_id} if item_id else {}
        return BillItem(
            name=name,
            price=Decimal(price),
            quantity=quantity,
            discount=Decimal(discount),
            splits=splits,
            **kwargs,
        )
    return _make_item


@pytest.fixture
def make_bill():
    def _make_bill(items, payer, group_id="g1", bill_id=None, **kwargs):
        for key in ("tax_amount", "tip_amount", "discount_amount"):
            if key in kwargs:
                kwargs[key] = Decimal(kwargs[key])
        if bill_id:
            kwargs["id"] = bill_id
        return Bill(group_id=group_id, payer_id=payer, items=list(items), **kwargs)
    return _make_bill


@pytest.fixture
def make_payment():
    def _make_payment(from_user, to_user, amount, group_id="g1"):
        return Payment(
            group_id=group_id,
            from_user=from_user,
            to_user=to_user,
            amount=Decimal(amount),
        )
    return _make_payment
