"""Order creation workflow.

Sequences customer lookup, product lookup, validation, assembly, order
persistence and stock reconciliation inside a single unit of work. Only a run
that reaches ``DONE`` commits; every other exit rolls the unit of work back, so
an order row never exists without its stock decrement (or the reverse).
"""

from enum import Enum
from typing import Optional, Sequence

from returns.result import Failure, Result, Success

from order_service.application.assembler import assemble_lines
from order_service.application.reconciler import StockReconciler
from order_service.application.validator import OrderValidator, index_products
from order_service.domain.entities import Order, OrderLineRequest
from order_service.domain.errors import OrderError, PersistenceFailure, RepositoryError
from order_service.domain.repositories import UnitOfWorkFactory
from shared.core import get_logger

logger = get_logger(__name__)


class WorkflowState(str, Enum):
    VALIDATING_CUSTOMER = "validating_customer"
    VALIDATING_PRODUCTS = "validating_products"
    ASSEMBLING = "assembling"
    PERSISTING_ORDER = "persisting_order"
    RECONCILING_STOCK = "reconciling_stock"
    DONE = "done"
    FAILED = "failed"


class _Run:
    """Tracks the state of one ``create_order`` call for logging."""

    def __init__(self, customer_id: str, line_count: int):
        self.customer_id = customer_id
        self.line_count = line_count
        self.state = WorkflowState.VALIDATING_CUSTOMER

    def advance(self, state: WorkflowState) -> None:
        logger.debug(
            f"Order workflow {self.state.value} -> {state.value}",
            extra={'extra_fields': self._fields(state=state.value)}
        )
        self.state = state

    def fail(self, error: OrderError) -> Failure:
        failed_in = self.state
        self.state = WorkflowState.FAILED
        fields = self._fields(failed_in=failed_in.value, error=error.code)
        if isinstance(error, PersistenceFailure):
            logger.error(f"Order creation failed: {error.message}", extra={'extra_fields': fields})
        else:
            logger.info(f"Order rejected: {error.message}", extra={'extra_fields': fields})
        return Failure(error)

    def _fields(self, **extra) -> dict:
        return {'customer_id': self.customer_id, 'lines': self.line_count, **extra}


class CreateOrderService:
    def __init__(self, uow_factory: UnitOfWorkFactory, validator: Optional[OrderValidator] = None):
        self.uow_factory = uow_factory
        self.validator = validator or OrderValidator()

    def create_order(
        self, customer_id: str, lines: Sequence[OrderLineRequest]
    ) -> Result[Order, OrderError]:
        run = _Run(customer_id, len(lines))
        with self.uow_factory() as uow:
            try:
                customer = uow.customers.find_by_id(customer_id)
                products = []
                if customer is not None:
                    run.advance(WorkflowState.VALIDATING_PRODUCTS)
                    products = uow.products.find_all_by_id({line.product_id for line in lines})
            except RepositoryError:
                logger.exception("Catalog lookup failed")
                return run.fail(PersistenceFailure("catalog lookup failed"))

            validated = self.validator.validate(customer, lines, products)
            if isinstance(validated, Failure):
                return run.fail(validated.failure())

            run.advance(WorkflowState.ASSEMBLING)
            order_lines = assemble_lines(validated.unwrap())

            run.advance(WorkflowState.PERSISTING_ORDER)
            try:
                order = uow.orders.create(customer, order_lines)
            except RepositoryError:
                logger.exception("Order persistence failed")
                return run.fail(PersistenceFailure("order insert failed"))

            run.advance(WorkflowState.RECONCILING_STOCK)
            try:
                reconciled = StockReconciler(uow.products).reconcile(
                    order.lines, index_products(products)
                )
            except RepositoryError:
                logger.exception("Stock reconciliation failed, order rolled back")
                return run.fail(PersistenceFailure("stock update failed"))
            if isinstance(reconciled, Failure):
                return run.fail(reconciled.failure())

            try:
                uow.commit()
            except RepositoryError:
                logger.exception("Order commit failed, order and stock rolled back")
                return run.fail(PersistenceFailure("commit failed"))

        run.advance(WorkflowState.DONE)
        logger.info(
            f"Order {order.id} created",
            extra={'extra_fields': {
                'order_id': order.id,
                'customer_id': customer_id,
                'total': str(order.total),
            }}
        )
        return Success(order)
