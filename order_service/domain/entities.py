"""Domain types used by the order placement workflow.

These are plain frozen dataclasses, independent from the ORM tables in
``models.py``; repositories translate between the two.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional


@dataclass(frozen=True)
class Customer:
    id: str
    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class Product:
    """Point-in-time snapshot of a catalog product."""
    id: str
    unit_price: Decimal
    available_quantity: int
    name: str = ""


@dataclass(frozen=True)
class OrderLineRequest:
    product_id: str
    requested_quantity: int

    def __post_init__(self):
        if self.requested_quantity <= 0:
            raise ValueError(
                f"requested_quantity must be positive, got {self.requested_quantity}"
            )


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    id: str
    customer_id: str
    lines: tuple[OrderLine, ...]
    created_at: Optional[datetime] = None

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class StockAdjustment:
    product_id: str
    # aggregate decrement for this product within one order
    quantity: int
    new_quantity: int


@dataclass(frozen=True)
class ValidatedOrder:
    """Request lines that passed validation, with the snapshot price per product."""
    customer: Customer
    requests: tuple[OrderLineRequest, ...]
    prices: Mapping[str, Decimal] = field(default_factory=dict)
