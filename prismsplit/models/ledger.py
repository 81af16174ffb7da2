"""
Derived Ledger Models

Everything in this module is computed from records and never persisted
by the engine. All amounts are integer minor units (cents for USD).

Sign conventions:
- Contribution.net: positive = others owe this user for the bill
- PairBalance.amount: what user_a owes user_b (negative = user_b owes user_a)
- LedgerView.per_user: positive = the user is owed money overall
- MemberBalance.balance: positive = the counterparty owes you
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# SPLIT AND BILL RESULTS
# =============================================================================

class Allocation(BaseModel):
    """One participant's owed amount for a single item."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    amount: int = Field(..., description="Owed amount in minor units")


class Contribution(BaseModel):
    """A user's position on a single bill."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    item_share: int = Field(
        default=0,
        description="Sum of the user's item allocations"
    )
    extras_share: int = Field(
        default=0,
        description="Tax + tip - discount allocated to the user"
    )
    net: int = Field(
        ...,
        description="Paid minus owed; positive = others owe this user"
    )

    @property
    def share(self) -> int:
        return self.item_share + self.extras_share


class OrphanReport(BaseModel):
    """A split that names a user outside the group's current members."""
    model_config = ConfigDict(frozen=True)

    bill_id: str
    item_id: Optional[str] = None
    user_id: str

    @property
    def message(self) -> str:
        where = f"item {self.item_id}" if self.item_id else "bill"
        return f"User {self.user_id} on {where} of bill {self.bill_id} is no longer a group member"


class BillAggregation(BaseModel):
    """Per-user net contributions for one bill."""
    model_config = ConfigDict(frozen=True)

    bill_id: str
    group_id: str
    payer_id: str
    currency: str
    total: int = Field(..., description="Bill total in minor units")
    contributions: list[Contribution] = Field(default_factory=list)
    orphans: list[OrphanReport] = Field(
        default_factory=list,
        description="Non-fatal membership problems found while aggregating"
    )

    def net_for(self, user_id: str) -> int:
        for contribution in self.contributions:
            if contribution.user_id == user_id:
                return contribution.net
        return 0

    @property
    def is_balanced(self) -> bool:
        return sum(c.net for c in self.contributions) == 0


# =============================================================================
# BALANCES
# =============================================================================

class Scope(BaseModel):
    """
    What a balance computation covers: one group, or every group.

    Use Scope.group(group_id) or Scope.all().
    """
    model_config = ConfigDict(frozen=True)

    group_id: Optional[str] = None

    @classmethod
    def group(cls, group_id: str) -> 'Scope':
        return cls(group_id=group_id)

    @classmethod
    def all(cls) -> 'Scope':
        return cls()

    @property
    def is_all(self) -> bool:
        return self.group_id is None

    def covers(self, group_id: str) -> bool:
        return self.is_all or self.group_id == group_id

    def __str__(self) -> str:
        return "all" if self.is_all else f"group:{self.group_id}"


class PairBalance(BaseModel):
    """
    Canonical pairwise balance: user_a sorts before user_b.

    Only this direction is stored; balance(b, a) is -amount.
    """
    model_config = ConfigDict(frozen=True)

    user_a: str
    user_b: str
    amount: int = Field(..., description="What user_a owes user_b")


class LedgerView(BaseModel):
    """Pairwise and per-user balances in a single currency."""
    model_config = ConfigDict(frozen=True)

    currency: str
    pairs: list[PairBalance] = Field(default_factory=list)
    per_user: dict[str, int] = Field(default_factory=dict)

    def balance(self, debtor: str, creditor: str) -> int:
        """How much `debtor` owes `creditor` (negative when reversed)."""
        if debtor == creditor:
            return 0
        user_a, user_b = sorted((debtor, creditor))
        for pair in self.pairs:
            if pair.user_a == user_a and pair.user_b == user_b:
                return pair.amount if debtor == user_a else -pair.amount
        return 0

    def net(self, user_id: str) -> int:
        return self.per_user.get(user_id, 0)

    @property
    def users(self) -> list[str]:
        return sorted(self.per_user)

    @property
    def is_settled(self) -> bool:
        return all(amount == 0 for amount in self.per_user.values())


class BalanceSheet(BaseModel):
    """
    Result of one balance computation.

    `groups` holds one view per group in scope. `totals` sums those views
    per currency; different currencies are never added together.
    """
    model_config = ConfigDict(frozen=True)

    scope: Scope
    groups: dict[str, LedgerView] = Field(default_factory=dict)
    totals: dict[str, LedgerView] = Field(default_factory=dict)

    @property
    def currencies(self) -> list[str]:
        return sorted(self.totals)


# =============================================================================
# SETTLEMENT AND FOCUS
# =============================================================================

class SettlementSuggestion(BaseModel):
    """Advisory transfer; recording it as a Payment is a separate user action."""
    model_config = ConfigDict(frozen=True)

    from_user: str
    to_user: str
    amount: int = Field(..., gt=0, description="Minor units")


class FocusState(str, Enum):
    """Coarse posture of a user's overall balance."""
    DEBT = "debt"
    LENDER = "lender"
    ZEN = "zen"


class FocusSummary(BaseModel):
    """Focus state plus the totals it was derived from (minor units)."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    currency: str
    state: FocusState
    net: int
    owed: int = Field(..., ge=0, description="Total others owe the user")
    owing: int = Field(..., ge=0, description="Total the user owes others")


# =============================================================================
# SUMMARIES
# =============================================================================

class MemberBalance(BaseModel):
    """One counterparty as seen by a user. Positive = they owe you."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    currency: str
    balance: int


class GroupBalanceSummary(BaseModel):
    """A user's net position within one group."""
    model_config = ConfigDict(frozen=True)

    group_id: str
    group_name: Optional[str] = None
    group_emoji: Optional[str] = None
    currency: str
    balance: int
