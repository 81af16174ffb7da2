"""
Balance Ledger

Re-derives pairwise and per-user balances from a snapshot of bills and
payments. Nothing is cached or mutated; the same snapshot always yields
the same BalanceSheet.

Rules:
- Each bill makes every non-payer a debtor of that bill's payer, for
  exactly their share (a negative share, left by a discount, flips the
  direction). Non-payers never owe each other.
- A payment from A to B reduces what A owes B. Overpaying flips the pair.
- Pairs are stored once, keyed (user_a, user_b) with user_a < user_b.
- A user's net is positive when they are owed money overall.

Groups with different currencies are kept apart in every total.
"""

from collections import defaultdict
from collections.abc import Iterable
from typing import Optional

from prismsplit.config import EngineSettings, get_settings
from prismsplit.engine.aggregator import aggregate
from prismsplit.engine.errors import AmbiguousCurrencyError, ScopeMismatchError
from prismsplit.engine.money import to_minor
from prismsplit.events.logger import get_logger
from prismsplit.models.ledger import (
    BalanceSheet,
    BillAggregation,
    LedgerView,
    PairBalance,
    Scope,
)
from prismsplit.models.records import Bill, Group, Payment

logger = get_logger(__name__)

PairMap = dict[tuple[str, str], int]


def add_debt(pairs: PairMap, debtor: str, creditor: str, amount: int) -> None:
    """Record that `debtor` owes `creditor` `amount` more (canonical key)."""
    if debtor == creditor or amount == 0:
        return
    if debtor < creditor:
        pairs[(debtor, creditor)] = pairs.get((debtor, creditor), 0) + amount
    else:
        pairs[(creditor, debtor)] = pairs.get((creditor, debtor), 0) - amount


def build_view(currency: str, pairs: PairMap, users: Iterable[str] = ()) -> LedgerView:
    """Materialize a LedgerView; `users` are listed in per_user even when zero."""
    per_user: dict[str, int] = {user_id: 0 for user_id in users}
    for (user_a, user_b), amount in pairs.items():
        per_user[user_a] = per_user.get(user_a, 0) - amount
        per_user[user_b] = per_user.get(user_b, 0) + amount

    return LedgerView(
        currency=currency,
        pairs=[
            PairBalance(user_a=a, user_b=b, amount=amount)
            for (a, b), amount in sorted(pairs.items())
        ],
        per_user=dict(sorted(per_user.items())),
    )


def _check_scope(scope: Scope, record_type: str, record_id: str, group_id: str,
                 known_groups: dict[str, Group]) -> None:
    if not scope.covers(group_id):
        raise ScopeMismatchError(record_type, record_id, str(scope), f"group:{group_id}")
    if known_groups and group_id not in known_groups:
        raise ScopeMismatchError(record_type, record_id, "supplied groups", f"group:{group_id}")


def compute_balances(
    bills: Iterable[Bill],
    payments: Iterable[Payment],
    scope: Optional[Scope] = None,
    groups: Optional[Iterable[Group]] = None,
    settings: Optional[EngineSettings] = None,
) -> BalanceSheet:
    """
    Compute pairwise and per-user balances for a scope.

    Args:
        bills: Every bill in scope, as of one point in time
        payments: Every payment in scope, as of the same point in time
        scope: Scope.group(id) or Scope.all() (default)
        groups: Group records. When given they supply currencies and
                membership, and every bill/payment must belong to one of
                them. When omitted every group uses the default currency.
        settings: Engine settings (default currency, tolerances)

    Raises:
        ScopeMismatchError: A bill or payment outside the scope, or a
                            payment between users foreign to its group
        InvalidSplitError: From any bill's allocation
    """
    settings = settings or get_settings().engine
    scope = scope or Scope.all()
    known_groups = {group.id: group for group in groups or ()}

    if not scope.is_all and known_groups and scope.group_id not in known_groups:
        raise ScopeMismatchError("group", scope.group_id, "supplied groups", str(scope))

    def currency_of(group_id: str) -> str:
        group = known_groups.get(group_id)
        return group.currency if group else settings.default_currency

    group_pairs: dict[str, PairMap] = defaultdict(dict)
    participants: dict[str, set[str]] = defaultdict(set)
    bill_count = 0

    for bill in bills:
        _check_scope(scope, "bill", bill.id, bill.group_id, known_groups)
        result: BillAggregation = aggregate(
            bill,
            group=known_groups.get(bill.group_id),
            currency=currency_of(bill.group_id),
            settings=settings,
        )
        pairs = group_pairs[bill.group_id]
        for contribution in result.contributions:
            participants[bill.group_id].add(contribution.user_id)
            if contribution.user_id != result.payer_id:
                add_debt(pairs, contribution.user_id, result.payer_id, -contribution.net)
        bill_count += 1

    payment_count = 0
    for payment in payments:
        _check_scope(scope, "payment", payment.id, payment.group_id, known_groups)
        group = known_groups.get(payment.group_id)
        if group is not None:
            allowed = set(group.member_ids) | participants[payment.group_id]
            for user_id in (payment.from_user, payment.to_user):
                if user_id not in allowed:
                    raise ScopeMismatchError(
                        "payment", payment.id, f"members of group:{group.id}", f"user:{user_id}"
                    )
        amount = to_minor(payment.amount, currency_of(payment.group_id))
        add_debt(group_pairs[payment.group_id], payment.from_user, payment.to_user, -amount)
        participants[payment.group_id].update((payment.from_user, payment.to_user))
        payment_count += 1

    group_ids = set(group_pairs)
    if not scope.is_all:
        group_ids.add(scope.group_id)

    views: dict[str, LedgerView] = {}
    currency_pairs: dict[str, PairMap] = defaultdict(dict)
    currency_users: dict[str, set[str]] = defaultdict(set)
    for group_id in sorted(group_ids):
        currency = currency_of(group_id)
        pairs = group_pairs.get(group_id, {})
        users = set(participants.get(group_id, ()))
        if group_id in known_groups:
            users.update(known_groups[group_id].member_ids)
        views[group_id] = build_view(currency, pairs, users)

        for (user_a, user_b), amount in pairs.items():
            add_debt(currency_pairs[currency], user_a, user_b, amount)
        currency_users[currency].update(users)

    totals = {
        currency: build_view(currency, currency_pairs.get(currency, {}), currency_users[currency])
        for currency in sorted(currency_users)
    }

    logger.debug(
        "balances_computed",
        scope=str(scope),
        bills=bill_count,
        payments=payment_count,
        groups=len(views),
    )

    return BalanceSheet(scope=scope, groups=views, totals=totals)


def resolve_view(sheet: BalanceSheet, currency: Optional[str] = None) -> LedgerView:
    """
    The per-currency total view of a sheet.

    Without a currency the sheet must hold exactly one, otherwise
    AmbiguousCurrencyError is raised. An empty sheet yields an empty view
    in the default currency.
    """
    if currency is not None:
        currency = currency.upper()
        if currency in sheet.totals:
            return sheet.totals[currency]
        return LedgerView(currency=currency)
    if not sheet.totals:
        return LedgerView(currency=get_settings().engine.default_currency)
    if len(sheet.totals) > 1:
        raise AmbiguousCurrencyError(str(sheet.scope), sheet.currencies)
    return next(iter(sheet.totals.values()))
