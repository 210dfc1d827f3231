from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator
import uuid


CENT = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    """Round a currency amount half-up to whole cents."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def _coerce_decimal(value):
    # floats go through str() so 4.1 becomes Decimal("4.1"), not its binary expansion
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# ==================== Order Input ====================

class Item(BaseModel):
    """A priced grocery line item, optionally assigned to one person."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(min_length=1)
    price: Decimal = Field(ge=0, decimal_places=2)  # Whole cents
    assigned_to: Optional[str] = None  # Person display name; None = unassigned

    @field_validator("price", mode="before")
    @classmethod
    def _price_to_decimal(cls, value):
        return _coerce_decimal(value)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Item name must not be blank")
        return value

    @field_validator("assigned_to")
    @classmethod
    def _blank_is_unassigned(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class Fees(BaseModel):
    """Order-level fees that are shared proportionally."""

    delivery: Decimal = Field(default=Decimal("0"), ge=0)
    service: Decimal = Field(default=Decimal("0"), ge=0)
    tip: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("delivery", "service", "tip", "tax", mode="before")
    @classmethod
    def _fee_to_decimal(cls, value):
        return _coerce_decimal(value)

    @property
    def total(self) -> Decimal:
        return self.delivery + self.service + self.tip + self.tax


class OrderData(BaseModel):
    """One order session: the line items plus the fees."""

    items: list[Item] = Field(default_factory=list)
    fees: Fees = Field(default_factory=Fees)

    @model_validator(mode="after")
    def _unique_item_ids(self):
        seen = set()
        for item in self.items:
            if item.id in seen:
                raise ValueError(f"Duplicate item id: {item.id}")
            seen.add(item.id)
        return self

    @property
    def people(self) -> list[str]:
        """Distinct assigned people in order of first appearance."""
        return list(dict.fromkeys(i.assigned_to for i in self.items if i.assigned_to is not None))


# ==================== Computed Shares ====================

class Split(BaseModel):
    """One person's share of an order.

    Amounts are kept at full precision; they are rounded to cents only when
    serialized to JSON or formatted into an expense payload.
    """

    person: str
    items: list[Item] = Field(default_factory=list)
    items_total: Decimal
    order_share: Decimal  # Fraction of the item subtotal, 0..1
    fee_share: Decimal
    total_owed: Decimal

    @property
    def order_share_percent(self) -> Decimal:
        return self.order_share * 100

    @property
    def item_names(self) -> list[str]:
        return [i.name for i in self.items]

    @field_serializer("items_total", "fee_share", "total_owed", when_used="json")
    def _money(self, value: Decimal) -> str:
        return f"{quantize_money(value):.2f}"

    @field_serializer("order_share", when_used="json")
    def _share(self, value: Decimal) -> float:
        return round(float(value), 4)


class SplitSummary(BaseModel):
    """All splits for an order plus the totals used to reconcile them."""

    splits: list[Split] = Field(default_factory=list)
    subtotal: Decimal
    total_fees: Decimal
    total_with_fees: Decimal
    unassigned_items: list[Item] = Field(default_factory=list)

    @field_serializer("subtotal", "total_fees", "total_with_fees", when_used="json")
    def _money(self, value: Decimal) -> str:
        return f"{quantize_money(value):.2f}"

    def get_split(self, person: str) -> Optional[Split]:
        """Find the split for a person by exact name."""
        for split in self.splits:
            if split.person == person:
                return split
        return None
