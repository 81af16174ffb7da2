"""
Balance Summaries

Read-only views over a computed BalanceSheet, shaped for one user:
- member_balances: every counterparty and what they owe the user
- group_summaries: the user's net position in each group

These never recompute anything; they only read a sheet the ledger built.
"""

from collections.abc import Iterable
from typing import Optional

from prismsplit.engine.ledger import resolve_view
from prismsplit.models.ledger import BalanceSheet, GroupBalanceSummary, MemberBalance
from prismsplit.models.records import Group


def member_balances(
    sheet: BalanceSheet,
    user_id: str,
    currency: Optional[str] = None,
    include_settled: bool = False,
) -> list[MemberBalance]:
    """
    Counterparties of `user_id`, netted across groups of one currency.

    Positive balance = the counterparty owes the user. Without a currency
    every currency in the sheet is listed, one entry per counterparty and
    currency. Sorted by currency, then the user's largest debts first,
    then largest credits.
    """
    if currency is not None:
        views = [resolve_view(sheet, currency)]
    else:
        views = [view for _, view in sorted(sheet.totals.items())]

    results = []
    for view in views:
        for counterparty in view.users:
            if counterparty == user_id:
                continue
            balance = view.balance(counterparty, user_id)
            if balance == 0 and not include_settled:
                continue
            results.append(MemberBalance(
                user_id=counterparty,
                currency=view.currency,
                balance=balance,
            ))

    results.sort(key=lambda m: (m.currency, m.balance, m.user_id))
    return results


def group_summaries(
    sheet: BalanceSheet,
    user_id: str,
    groups: Iterable[Group] = (),
) -> list[GroupBalanceSummary]:
    """The user's net balance in every group of the sheet they appear in."""
    group_map = {group.id: group for group in groups}

    results = []
    for group_id, view in sorted(sheet.groups.items()):
        if user_id not in view.per_user:
            continue
        group = group_map.get(group_id)
        results.append(GroupBalanceSummary(
            group_id=group_id,
            group_name=group.name if group else None,
            group_emoji=group.emoji if group else None,
            currency=view.currency,
            balance=view.net(user_id),
        ))
    return results
