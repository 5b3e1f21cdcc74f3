"""Collaborator interfaces consumed by the order creation workflow.

Storage adapters implement these protocols; the workflow only ever sees them
through a ``UnitOfWork`` so that order creation and stock decrement share one
transaction.
"""

from typing import Callable, Iterable, Optional, Protocol, Sequence

from returns.result import Result

from order_service.domain.entities import Customer, Order, OrderLine, Product, StockAdjustment
from order_service.domain.errors import InsufficientStock


class CustomerRepository(Protocol):
    def find_by_id(self, customer_id: str) -> Optional[Customer]:
        ...


class ProductRepository(Protocol):
    def find_all_by_id(self, ids: Iterable[str]) -> list[Product]:
        """Return one snapshot per known id; unknown ids are omitted."""
        ...

    def update_quantity(
        self, adjustments: Sequence[StockAdjustment]
    ) -> Result[None, InsufficientStock]:
        """Conditionally decrement stock, one record per product.

        Each decrement only applies while ``available_quantity >= quantity``;
        the first adjustment that does not apply is reported as a failure.
        """
        ...


class OrderRepository(Protocol):
    def create(self, customer: Customer, lines: Sequence[OrderLine]) -> Order:
        ...


class UnitOfWork(Protocol):
    customers: CustomerRepository
    products: ProductRepository
    orders: OrderRepository

    def __enter__(self) -> "UnitOfWork":
        ...

    def __exit__(self, exc_type, exc, tb) -> None:
        """Roll back anything not committed."""
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
