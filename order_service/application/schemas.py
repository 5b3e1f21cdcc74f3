from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255)

class CustomerRead(BaseModel):
    id: str
    name: str
    email: str
    model_config = ConfigDict(from_attributes=True)

class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(ge=0)

class ProductRead(BaseModel):
    id: str
    name: str
    price: Decimal
    # "quantity" on the wire, available_quantity in storage
    quantity: int = Field(validation_alias=AliasChoices("quantity", "available_quantity"))
    model_config = ConfigDict(from_attributes=True)

class OrderProductCreate(BaseModel):
    id: str
    quantity: int = Field(gt=0)

class OrderCreate(BaseModel):
    customer_id: str
    products: list[OrderProductCreate]

class OrderProductRead(BaseModel):
    product_id: str
    quantity: int
    price: Decimal

class OrderRead(BaseModel):
    id: str
    customer_id: str
    total: Decimal
    created_at: Optional[datetime] = None
    order_products: list[OrderProductRead]

    @classmethod
    def from_order(cls, order) -> "OrderRead":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            total=order.total,
            created_at=order.created_at,
            order_products=[
                OrderProductRead(product_id=line.product_id, quantity=line.quantity, price=line.unit_price)
                for line in order.lines
            ],
        )

class ErrorRead(BaseModel):
    detail: str
    code: str
