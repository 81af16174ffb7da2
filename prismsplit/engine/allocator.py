"""
Split Allocator

Divides one bill item among its participants. Every function returns a
list of Allocation records, ordered by user id, whose amounts sum to the
item's line total exactly, to the minor unit.

Three modes:
- equal: integer division, remainder handed out one unit at a time in
  ascending user-id order
- proportional: percentages must sum to 100 within tolerance; the
  largest-remainder method absorbs the rounding drift
- custom: explicit amounts must sum to the total within tolerance; a drift
  inside tolerance is absorbed by the largest split
"""

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from fractions import Fraction
from typing import Optional

from prismsplit.config import EngineSettings, get_settings
from prismsplit.engine.errors import InvalidSplitError
from prismsplit.engine.money import to_minor
from prismsplit.events.logger import get_logger
from prismsplit.models.ledger import Allocation
from prismsplit.models.records import BillItem, SplitMode

logger = get_logger(__name__)

HUNDRED = Decimal("100")


def _check_unique(user_ids: Iterable[str]) -> list[str]:
    ordered = list(user_ids)
    if not ordered:
        raise InvalidSplitError("Split has no participants")
    duplicates = sorted({u for u in ordered if ordered.count(u) > 1})
    if duplicates:
        raise InvalidSplitError(f"Duplicate participants: {', '.join(duplicates)}")
    return ordered


def split_equal(total: int, user_ids: Sequence[str]) -> list[Allocation]:
    """
    Split `total` minor units equally among `user_ids`.

    10.00 among three users gives 334 / 333 / 333, the extra unit going to
    the lowest user id.
    """
    ordered = sorted(_check_unique(user_ids))
    if total < 0:
        raise InvalidSplitError("Cannot split a negative amount", actual=total)

    base, remainder = divmod(total, len(ordered))
    return [
        Allocation(user_id=user_id, amount=base + (1 if i < remainder else 0))
        for i, user_id in enumerate(ordered)
    ]


def split_by_weights(total: int, weights: Mapping[str, Decimal]) -> list[Allocation]:
    """
    Largest-remainder allocation of `total` in proportion to `weights`.

    Each user first gets the floor of their exact share. The units left
    over go, one each, to the largest fractional remainders; ties go to
    the lower user id. A negative total is allocated by magnitude and the
    signs restored, so discounts round the same way charges do.
    """
    _check_unique(weights)
    if any(w < 0 for w in weights.values()):
        raise InvalidSplitError("Split weights cannot be negative")
    weight_sum = sum((Fraction(w) for w in weights.values()), Fraction(0))
    if weight_sum == 0:
        raise InvalidSplitError("Split weights are all zero")

    sign = -1 if total < 0 else 1
    magnitude = abs(total)

    floors: dict[str, int] = {}
    remainders: list[tuple[Fraction, str]] = []
    for user_id in sorted(weights):
        exact = magnitude * Fraction(weights[user_id]) / weight_sum
        floor = exact.numerator // exact.denominator
        floors[user_id] = floor
        remainders.append((exact - floor, user_id))

    leftover = magnitude - sum(floors.values())
    remainders.sort(key=lambda r: (-r[0], r[1]))
    for _, user_id in remainders[:leftover]:
        floors[user_id] += 1

    return [Allocation(user_id=u, amount=sign * floors[u]) for u in sorted(floors)]


def split_proportional(
    total: int,
    percentages: Mapping[str, Decimal],
    tolerance: Decimal = Decimal("0.01"),
) -> list[Allocation]:
    """
    Split `total` by percentage.

    Raises InvalidSplitError when the percentages are more than
    `tolerance` points away from 100.
    """
    _check_unique(percentages)
    pct_sum = sum((Decimal(str(p)) for p in percentages.values()), Decimal("0"))
    if abs(pct_sum - HUNDRED) > tolerance:
        raise InvalidSplitError(
            "Percentages must sum to 100",
            expected=HUNDRED,
            actual=pct_sum,
        )
    return split_by_weights(total, {u: Decimal(str(p)) for u, p in percentages.items()})


def split_custom(
    total: int,
    amounts: Mapping[str, int],
    tolerance: int = 1,
) -> list[Allocation]:
    """
    Accept explicit minor-unit amounts.

    A difference of up to `tolerance` units is added to (or taken from)
    the largest split; anything larger is rejected.
    """
    _check_unique(amounts)
    if any(a < 0 for a in amounts.values()):
        raise InvalidSplitError("Custom amounts cannot be negative")

    allocated = dict(amounts)
    difference = total - sum(allocated.values())
    if abs(difference) > tolerance:
        raise InvalidSplitError(
            "Custom amounts must sum to the item total",
            expected=total,
            actual=sum(allocated.values()),
        )
    if difference:
        largest = min(allocated, key=lambda u: (-allocated[u], u))
        allocated[largest] += difference

    return [Allocation(user_id=u, amount=allocated[u]) for u in sorted(allocated)]


def allocate(
    item: BillItem,
    currency: str = "USD",
    members: Optional[Iterable[str]] = None,
    bill_id: Optional[str] = None,
    settings: Optional[EngineSettings] = None,
) -> list[Allocation]:
    """
    Allocate a bill item's line total among the users in its splits.

    Args:
        item: The item to split (price x quantity - discount)
        currency: Currency of the owning group, for minor-unit conversion
        members: Group member ids. When given, every participant must be
                 one of them.
        bill_id: Owning bill, for error context only
        settings: Tolerances; defaults to the configured engine settings

    Raises:
        InvalidSplitError: No participants, duplicates, mixed modes,
                           non-members, or sums outside tolerance
    """
    settings = settings or get_settings().engine

    try:
        participants = _check_unique(item.participant_ids)

        modes = {split.mode for split in item.splits}
        if len(modes) > 1:
            raise InvalidSplitError(
                f"Mixed split modes: {', '.join(sorted(m.value for m in modes))}"
            )
        mode = modes.pop()

        if members is not None:
            member_set = set(members)
            outsiders = sorted(u for u in participants if u not in member_set)
            if outsiders:
                raise InvalidSplitError(
                    f"Participants are not group members: {', '.join(outsiders)}"
                )

        total = to_minor(item.line_total, currency)

        if mode == SplitMode.EQUAL:
            allocations = split_equal(total, participants)
        elif mode == SplitMode.PROPORTIONAL:
            allocations = split_proportional(
                total,
                {split.user_id: split.percentage for split in item.splits},
                tolerance=settings.percentage_tolerance,
            )
        else:
            allocations = split_custom(
                total,
                {split.user_id: to_minor(split.amount, currency) for split in item.splits},
                tolerance=settings.amount_tolerance_minor,
            )
    except InvalidSplitError as e:
        logger.info(
            "split_rejected",
            bill_id=bill_id,
            item_id=item.id,
            reason=e.reason,
        )
        raise InvalidSplitError(
            e.reason,
            bill_id=bill_id,
            item_id=item.id,
            expected=e.expected,
            actual=e.actual,
        ) from e

    logger.debug(
        "split_allocated",
        bill_id=bill_id,
        item_id=item.id,
        mode=mode.value,
        total=total,
        participants=len(allocations),
    )
    return allocations
