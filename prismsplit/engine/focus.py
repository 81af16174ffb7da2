"""
Focus Classifier

A thin rule layer over computed balances:

    debt    owing > owed * ratio and owing > threshold
    lender  owed > owing * ratio and owed > threshold
    zen     otherwise

The threshold is configured in major units and scaled to the currency's
minor unit before comparison. Currencies are classified separately.
"""

from typing import Optional

from prismsplit.config import FocusSettings, get_settings
from prismsplit.engine.ledger import resolve_view
from prismsplit.engine.money import minor_factor
from prismsplit.events.logger import get_logger
from prismsplit.models.ledger import BalanceSheet, FocusState, FocusSummary, LedgerView

logger = get_logger(__name__)


def classify(
    net: int,
    owed: int,
    owing: int,
    currency: str = "USD",
    settings: Optional[FocusSettings] = None,
) -> FocusState:
    """Classify a user's posture from totals in minor units."""
    settings = settings or get_settings().focus
    threshold = settings.threshold * minor_factor(currency)

    if owing > owed * settings.ratio and owing > threshold:
        state = FocusState.DEBT
    elif owed > owing * settings.ratio and owed > threshold:
        state = FocusState.LENDER
    else:
        state = FocusState.ZEN

    logger.debug("focus_classified", net=net, owed=owed, owing=owing, state=state.value)
    return state


def _summarize_view(
    view: LedgerView,
    user_id: str,
    settings: Optional[FocusSettings] = None,
) -> FocusSummary:
    owed = 0
    owing = 0
    for counterparty in view.users:
        if counterparty == user_id:
            continue
        balance = view.balance(counterparty, user_id)
        if balance > 0:
            owed += balance
        else:
            owing -= balance

    net = view.net(user_id)
    return FocusSummary(
        user_id=user_id,
        currency=view.currency,
        state=classify(net, owed, owing, view.currency, settings),
        net=net,
        owed=owed,
        owing=owing,
    )


def summarize_focus_by_currency(
    sheet: BalanceSheet,
    user_id: str,
    settings: Optional[FocusSettings] = None,
) -> list[FocusSummary]:
    """One focus summary per currency in the sheet, ordered by currency code."""
    return [
        _summarize_view(view, user_id, settings)
        for _, view in sorted(sheet.totals.items())
    ]


def summarize_focus(
    sheet: BalanceSheet,
    user_id: str,
    currency: Optional[str] = None,
    settings: Optional[FocusSettings] = None,
    default_currency: Optional[str] = None,
) -> FocusSummary:
    """
    Focus state for one user from an "all groups" balance sheet.

    owed/owing are summed per counterparty after netting that
    counterparty's balance across groups of one currency.

    When no currency is requested and the sheet holds several, the
    primary currency is used: the default currency if the user has
    anything outstanding in it, otherwise the currency with the most
    outstanding (ties by currency code). Use summarize_focus_by_currency
    for the full picture.
    """
    if currency is not None or len(sheet.totals) <= 1:
        return _summarize_view(resolve_view(sheet, currency), user_id, settings)

    default_currency = (default_currency or get_settings().engine.default_currency).upper()
    summaries = summarize_focus_by_currency(sheet, user_id, settings)
    return min(
        summaries,
        key=lambda s: (
            s.owed + s.owing == 0,
            s.currency != default_currency,
            -(s.owed + s.owing),
            s.currency,
        ),
    )
