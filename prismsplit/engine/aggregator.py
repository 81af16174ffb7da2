"""
Bill Aggregator

Turns one bill into per-user net contributions:

    payer:      bill total - own item share - own extras share
    everyone:   -(item share + extras share)

Extras are tax, tip and the bill-wide discount. Proportional extras are
pooled and allocated by item share in a single largest-remainder pass;
equal extras are split evenly across the bill's participants.

INVARIANT: contributions always sum to zero.
"""

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from prismsplit.config import EngineSettings, get_settings
from prismsplit.engine.allocator import allocate, split_by_weights, split_equal
from prismsplit.engine.errors import InvalidSplitError, OrphanParticipantError
from prismsplit.engine.money import to_minor
from prismsplit.events.logger import get_logger
from prismsplit.models.ledger import BillAggregation, Contribution, OrphanReport
from prismsplit.models.records import Bill, ExtraSplitMode, Group

logger = get_logger(__name__)


def _extras_pools(bill: Bill, currency: str) -> tuple[int, int]:
    """(proportional pool, equal pool) in minor units; the discount is always proportional."""
    proportional = -to_minor(bill.discount_amount, currency)
    equal = 0
    for amount, mode in (
        (bill.tax_amount, bill.tax_split_mode),
        (bill.tip_amount, bill.tip_split_mode),
    ):
        if mode == ExtraSplitMode.EQUAL:
            equal += to_minor(amount, currency)
        else:
            proportional += to_minor(amount, currency)
    return proportional, equal


def find_orphans(bill: Bill, members: Iterable[str]) -> list[OrphanReport]:
    """Splits and payer references to users outside `members`."""
    member_set = set(members)
    reports = []
    if bill.payer_id not in member_set:
        reports.append(OrphanReport(bill_id=bill.id, user_id=bill.payer_id))
    for item in bill.items:
        for user_id in item.participant_ids:
            if user_id not in member_set:
                reports.append(OrphanReport(bill_id=bill.id, item_id=item.id, user_id=user_id))
    return reports


def aggregate(
    bill: Bill,
    group: Optional[Group] = None,
    currency: Optional[str] = None,
    strict: bool = False,
    settings: Optional[EngineSettings] = None,
) -> BillAggregation:
    """
    Compute every participant's net contribution to a bill.

    Args:
        bill: The bill to aggregate
        group: Owning group. Supplies the currency and the member set used
               for orphan detection. Optional for callers that only know
               the currency.
        currency: Used when no group is given (defaults to the configured
                  default currency)
        strict: Raise OrphanParticipantError instead of reporting it
        settings: Tolerances passed through to the allocator

    Raises:
        InvalidSplitError: From any item's allocation, or a bill with no items
        OrphanParticipantError: Only when strict=True
    """
    settings = settings or get_settings().engine
    if group is not None:
        currency = group.currency
    currency = currency or settings.default_currency

    if not bill.items:
        raise InvalidSplitError("Bill has no items", bill_id=bill.id)

    orphans: list[OrphanReport] = []
    if group is not None:
        orphans = find_orphans(bill, group.member_ids)
        for report in orphans:
            if strict:
                raise OrphanParticipantError(report.user_id, report.bill_id, report.item_id)
            logger.warning(
                "orphan_participant",
                bill_id=report.bill_id,
                item_id=report.item_id,
                user_id=report.user_id,
            )

    # Historical membership: orphaned splits still count.
    item_shares: dict[str, int] = defaultdict(int)
    for item in bill.items:
        for allocation in allocate(item, currency=currency, bill_id=bill.id, settings=settings):
            item_shares[allocation.user_id] += allocation.amount

    extras: dict[str, int] = defaultdict(int)
    proportional_pool, equal_pool = _extras_pools(bill, currency)
    participants = sorted(item_shares)

    if proportional_pool:
        weights = {u: Decimal(item_shares[u]) for u in participants}
        if sum(weights.values()) == 0:
            # Every item fully discounted: fall back to equal weighting.
            weights = {u: Decimal(1) for u in participants}
        for allocation in split_by_weights(proportional_pool, weights):
            extras[allocation.user_id] += allocation.amount
    if equal_pool:
        for allocation in split_equal(equal_pool, participants):
            extras[allocation.user_id] += allocation.amount

    total = sum(item_shares.values()) + proportional_pool + equal_pool

    contributions = []
    for user_id in sorted(set(participants) | {bill.payer_id}):
        share = item_shares.get(user_id, 0) + extras.get(user_id, 0)
        paid = total if user_id == bill.payer_id else 0
        contributions.append(Contribution(
            user_id=user_id,
            item_share=item_shares.get(user_id, 0),
            extras_share=extras.get(user_id, 0),
            net=paid - share,
        ))

    logger.debug(
        "bill_aggregated",
        bill_id=bill.id,
        total=total,
        participants=len(contributions),
        orphans=len(orphans),
    )

    return BillAggregation(
        bill_id=bill.id,
        group_id=bill.group_id,
        payer_id=bill.payer_id,
        currency=currency,
        total=total,
        contributions=contributions,
        orphans=orphans,
    )
