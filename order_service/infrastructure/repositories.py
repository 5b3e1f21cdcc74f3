"""SQLAlchemy implementations of the order workflow collaborators.

All repositories share the session of the ``SqlAlchemyUnitOfWork`` that
created them and never commit on their own.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence
import uuid

from returns.result import Failure, Result, Success
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from order_service.domain import models
from order_service.domain.entities import Customer, Order, OrderLine, Product, StockAdjustment
from order_service.domain.errors import InsufficientStock, RepositoryError
from order_service.infrastructure.db import SessionLocal
from shared.core import get_logger

logger = get_logger(__name__)


def to_customer(row: models.Customer) -> Customer:
    return Customer(id=row.id, name=row.name, email=row.email)


def to_product(row: models.Product) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        unit_price=Decimal(row.price),
        available_quantity=row.available_quantity,
    )


def to_order(row: models.Order) -> Order:
    return Order(
        id=row.id,
        customer_id=row.customer_id,
        created_at=row.created_at,
        lines=tuple(
            OrderLine(product_id=op.product_id, quantity=op.quantity, unit_price=Decimal(op.price))
            for op in row.order_products
        ),
    )


class SqlAlchemyCustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, customer_id: str) -> Optional[Customer]:
        try:
            row = self.db.get(models.Customer, customer_id)
        except SQLAlchemyError as e:
            raise RepositoryError("customer lookup failed") from e
        return to_customer(row) if row else None


class SqlAlchemyProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_all_by_id(self, ids: Iterable[str]) -> list[Product]:
        wanted = set(ids)
        if not wanted:
            return []
        try:
            rows = self.db.scalars(
                select(models.Product).where(models.Product.id.in_(wanted))
            ).all()
        except SQLAlchemyError as e:
            raise RepositoryError("product lookup failed") from e
        return [to_product(row) for row in rows]

    def update_quantity(
        self, adjustments: Sequence[StockAdjustment]
    ) -> Result[None, InsufficientStock]:
        """Apply each decrement only while enough stock remains.

        Rows are updated in product id order so concurrent orders lock them in
        the same sequence. Stops at the first adjustment that matches no row;
        adjustments already applied stay in the session and are discarded by
        the caller's rollback.
        """
        for adjustment in sorted(adjustments, key=lambda a: a.product_id):
            statement = (
                update(models.Product)
                .where(
                    models.Product.id == adjustment.product_id,
                    models.Product.available_quantity >= adjustment.quantity,
                )
                .values(available_quantity=models.Product.available_quantity - adjustment.quantity)
                .execution_options(synchronize_session=False)
            )
            try:
                result = self.db.execute(statement)
            except SQLAlchemyError as e:
                raise RepositoryError(
                    f"stock update failed for product {adjustment.product_id}"
                ) from e
            if result.rowcount != 1:
                logger.warning(
                    f"Conditional stock decrement rejected for product {adjustment.product_id}",
                    extra={'extra_fields': {
                        'product_id': adjustment.product_id,
                        'quantity': adjustment.quantity,
                        'expected_new_quantity': adjustment.new_quantity,
                    }}
                )
                return Failure(InsufficientStock(adjustment.product_id))
        return Success(None)


class SqlAlchemyOrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, customer: Customer, lines: Sequence[OrderLine]) -> Order:
        order = Order(
            id=uuid.uuid4().hex,
            customer_id=customer.id,
            lines=tuple(lines),
            created_at=datetime.utcnow(),
        )
        row = models.Order(
            id=order.id,
            customer_id=order.customer_id,
            order_total=order.total,
            created_at=order.created_at,
            order_products=[
                models.OrderProduct(
                    product_id=line.product_id,
                    position=position,
                    quantity=line.quantity,
                    price=line.unit_price,
                )
                for position, line in enumerate(order.lines)
            ],
        )
        try:
            self.db.add(row)
            self.db.flush()
        except SQLAlchemyError as e:
            raise RepositoryError("order insert failed") from e
        return order

    def get(self, order_id: str) -> Optional[Order]:
        row = self.db.scalars(
            select(models.Order)
            .options(selectinload(models.Order.order_products))
            .where(models.Order.id == order_id)
        ).first()
        return to_order(row) if row else None


class SqlAlchemyUnitOfWork:
    """One session, one transaction: commit only when asked, roll back on exit."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self.session_factory()
        self.customers = SqlAlchemyCustomerRepository(self.session)
        self.products = SqlAlchemyProductRepository(self.session)
        self.orders = SqlAlchemyOrderRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self.session.close()

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryError("commit failed") from e

    def rollback(self) -> None:
        self.session.rollback()
