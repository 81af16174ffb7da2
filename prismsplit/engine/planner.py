"""
Settlement Planner

Suggests the transfers that would bring every member of a group to a zero
net balance, using the greedy min-cash-flow algorithm:

1. Reduce each user to one signed net (creditors > 0, debtors < 0).
2. Keep two max-heaps, one of creditors and one of debtors by magnitude.
3. Pop the largest of each, transfer min(|debt|, credit), push back the
   remainder, repeat until both heaps are empty.

Equal magnitudes are ordered by ascending user id, so the plan is
deterministic. The plan is advisory; it never records payments.
"""

import heapq
from collections.abc import Mapping
from typing import Union

from prismsplit.engine.errors import LedgerError
from prismsplit.events.logger import get_logger
from prismsplit.models.ledger import LedgerView, SettlementSuggestion

logger = get_logger(__name__)


def plan(balances: Union[LedgerView, Mapping[str, int]]) -> list[SettlementSuggestion]:
    """
    Minimal-transaction settlement plan.

    Args:
        balances: A group's LedgerView, or a mapping of user id to net
                  balance in minor units (positive = owed money)

    Raises:
        LedgerError: If the nets do not sum to zero
    """
    nets = balances.per_user if isinstance(balances, LedgerView) else balances

    if sum(nets.values()) != 0:
        raise LedgerError(f"Net balances do not sum to zero: {sum(nets.values())}")

    # heapq is a min-heap: store negated magnitudes for max-heap behaviour.
    creditors = [(-amount, user_id) for user_id, amount in nets.items() if amount > 0]
    debtors = [(amount, user_id) for user_id, amount in nets.items() if amount < 0]
    heapq.heapify(creditors)
    heapq.heapify(debtors)

    suggestions = []
    while creditors and debtors:
        credit_neg, creditor_id = heapq.heappop(creditors)
        debt_neg, debtor_id = heapq.heappop(debtors)

        settle_amount = min(-credit_neg, -debt_neg)
        suggestions.append(SettlementSuggestion(
            from_user=debtor_id,
            to_user=creditor_id,
            amount=settle_amount,
        ))

        remaining_credit = -credit_neg - settle_amount
        remaining_debt = -debt_neg - settle_amount
        if remaining_credit > 0:
            heapq.heappush(creditors, (-remaining_credit, creditor_id))
        if remaining_debt > 0:
            heapq.heappush(debtors, (-remaining_debt, debtor_id))

    logger.debug("settlement_planned", transactions=len(suggestions))
    return suggestions


def apply_plan(
    nets: Mapping[str, int],
    suggestions: list[SettlementSuggestion],
) -> dict[str, int]:
    """Net balances after every suggested transfer is paid."""
    result = dict(nets)
    for suggestion in suggestions:
        result[suggestion.from_user] = result.get(suggestion.from_user, 0) + suggestion.amount
        result[suggestion.to_user] = result.get(suggestion.to_user, 0) - suggestion.amount
    return result
