"""
Input Records for PrismSplit

These models describe the snapshots the engine consumes:
users, groups, bills with their items and splits, and settlement payments.
They are supplied by the persistence layer already validated and already
persisted; the engine never mutates them.

DESIGN DECISION: Records are frozen pydantic models. A snapshot that
cannot change underneath a computation keeps recomputation deterministic.

Money fields are Decimal major units, exactly as stored. The engine
converts them to integer minor units at entry (see engine.money).
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def new_id() -> str:
    """Generate a fresh record identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SplitMode(str, Enum):
    """
    How one item's price is divided among its participants.

    All splits of a single item must use the same mode.
    """
    EQUAL = "equal"                # weight 1 each
    PROPORTIONAL = "proportional"  # explicit percentage each, summing to 100
    CUSTOM = "custom"              # explicit amount each, summing to the price


class ExtraSplitMode(str, Enum):
    """How a bill-level charge (tax, tip) is divided."""
    EQUAL = "equal"
    PROPORTIONAL = "proportional"


class Category(str, Enum):
    """Supported bill categories."""
    GROCERIES = "groceries"
    DINING = "dining"
    TRANSPORT = "transport"
    UTILITIES = "utilities"
    ENTERTAINMENT = "entertainment"
    TRAVEL = "travel"
    SHOPPING = "shopping"
    TRANSFER = "transfer"
    OTHER = "other"


# =============================================================================
# PEOPLE AND GROUPS
# =============================================================================

class User(BaseModel):
    """A person who can pay for or take part in bills."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id, min_length=1)
    full_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    email: Optional[str] = Field(default=None, max_length=255)
    avatar_url: Optional[str] = None
    color_index: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Avatar color slot (0-5)"
    )


class Group(BaseModel):
    """
    A set of people sharing expenses in a single currency.

    Members are ordered by join time. The creator, when known, is always
    the first member.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Group name"
    )
    emoji: str = Field(default="💸", max_length=8)
    currency: str = Field(
        default="USD",
        description="ISO 4217 currency code shared by every bill in the group"
    )
    invite_code: Optional[str] = Field(
        default=None,
        description="Join code, issued by the invite service"
    )
    created_by: Optional[str] = None
    member_ids: list[str] = Field(
        default_factory=list,
        description="Member user ids in join order"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError(f"Invalid ISO currency code: {v}")
        return v

    @field_validator('member_ids')
    @classmethod
    def validate_unique_members(cls, v: list[str]) -> list[str]:
        """A user can only join a group once."""
        seen = set()
        for user_id in v:
            if user_id in seen:
                raise ValueError(f"Duplicate group member: {user_id}")
            seen.add(user_id)
        return v

    @model_validator(mode='after')
    def validate_creator_first(self) -> 'Group':
        if self.created_by and self.member_ids and self.member_ids[0] != self.created_by:
            raise ValueError("Group creator must be the first member")
        return self

    def has_member(self, user_id: str) -> bool:
        return user_id in self.member_ids


# =============================================================================
# BILLS
# =============================================================================

class Split(BaseModel):
    """
    One participant's stake in a bill item.

    `percentage` is required for proportional splits and `amount` for
    custom splits. Equal splits carry neither.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    mode: SplitMode = SplitMode.EQUAL
    percentage: Optional[Decimal] = Field(
        default=None,
        ge=0,
        le=100,
        description="Share of the item in percent (proportional mode)"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Share of the item in major units (custom mode)"
    )

    @model_validator(mode='after')
    def validate_mode_fields(self) -> 'Split':
        if self.mode == SplitMode.PROPORTIONAL and self.percentage is None:
            raise ValueError("Proportional split requires a percentage")
        if self.mode == SplitMode.CUSTOM and self.amount is None:
            raise ValueError("Custom split requires an amount")
        return self


class BillItem(BaseModel):
    """A line on a bill, divided among the users in its splits."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Item name"
    )
    price: Decimal = Field(
        ...,
        gt=0,
        description="Unit price in major units"
    )
    quantity: int = Field(default=1, ge=1)
    discount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Total discount for this line (not per unit)"
    )
    category: Optional[Category] = None
    splits: list[Split] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_discount(self) -> 'BillItem':
        if self.discount > self.price * self.quantity:
            raise ValueError("Item discount cannot exceed the line total")
        return self

    @property
    def line_total(self) -> Decimal:
        """Amount divided among the participants: price x quantity - discount."""
        return self.price * self.quantity - self.discount

    @property
    def participant_ids(self) -> list[str]:
        return [split.user_id for split in self.splits]


class Bill(BaseModel):
    """
    A shared expense fronted by one payer.

    Total = subtotal - discount + tax + tip, where subtotal is the sum of
    item line totals.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id, min_length=1)
    group_id: str = Field(..., min_length=1)
    title: str = Field(default="Bill", min_length=1, max_length=200)
    payer_id: str = Field(
        ...,
        min_length=1,
        description="User who fronted the money"
    )
    bill_date: date = Field(default_factory=date.today)
    category: Optional[Category] = None

    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    tip_amount: Decimal = Field(default=Decimal("0"), ge=0)
    discount_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Bill-wide discount, always allocated proportionally"
    )
    tax_split_mode: ExtraSplitMode = ExtraSplitMode.PROPORTIONAL
    tip_split_mode: ExtraSplitMode = ExtraSplitMode.PROPORTIONAL

    items: list[BillItem] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_discount(self) -> 'Bill':
        if self.discount_amount > self.subtotal:
            raise ValueError("Bill discount cannot exceed the subtotal")
        return self

    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount_amount + self.tax_amount + self.tip_amount

    @property
    def participant_ids(self) -> list[str]:
        """Every user named in any split, in first-seen order."""
        seen: dict[str, None] = {}
        for item in self.items:
            for user_id in item.participant_ids:
                seen.setdefault(user_id, None)
        return list(seen)


# =============================================================================
# SETTLEMENTS
# =============================================================================

class Payment(BaseModel):
    """
    Money that changed hands outside the system.

    CRITICAL: Payments are immutable. Corrections are new offsetting
    payments, never edits.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id, min_length=1)
    group_id: str = Field(..., min_length=1)
    from_user: str = Field(..., min_length=1, description="User who paid")
    to_user: str = Field(..., min_length=1, description="User who received")
    amount: Decimal = Field(..., gt=0, description="Amount in major units")
    notes: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode='after')
    def validate_parties(self) -> 'Payment':
        if self.from_user == self.to_user:
            raise ValueError("A payment needs two different users")
        return self
