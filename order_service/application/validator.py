"""Order validation: existence, availability and price snapshot.

The checks run in a fixed order and stop at the first failure so the error
returned for a given request is reproducible:

1. customer exists
2. at least one product was found
3. every requested product was found (first missing id, request order)
4. every line is in stock according to the stock policy (first offender)

Duplicate product ids in one request are a policy decision. The default
``PerLineStockPolicy`` checks each line on its own against the same snapshot,
so two lines can each pass while their sum exceeds the stock; the stock
reconciler's conditional decrement then rejects the order. The
``AggregateStockPolicy`` rejects such requests here instead.
"""

from collections import defaultdict
from typing import Mapping, Optional, Protocol, Sequence

from returns.result import Failure, Result, Success

from order_service.domain.entities import (
    Customer,
    OrderLineRequest,
    Product,
    ValidatedOrder,
)
from order_service.domain.errors import (
    CustomerNotFound,
    InsufficientStock,
    NoProductsFound,
    OrderError,
    ProductNotFound,
)


class StockPolicy(Protocol):
    def first_unavailable(
        self,
        requests: Sequence[OrderLineRequest],
        snapshot: Mapping[str, Product],
    ) -> Optional[str]:
        """Return the first product id (request order) that cannot be served."""
        ...


class PerLineStockPolicy:
    def first_unavailable(self, requests, snapshot):
        for request in requests:
            if request.requested_quantity > snapshot[request.product_id].available_quantity:
                return request.product_id
        return None


class AggregateStockPolicy:
    def first_unavailable(self, requests, snapshot):
        demand: dict[str, int] = defaultdict(int)
        for request in requests:
            demand[request.product_id] += request.requested_quantity
            if demand[request.product_id] > snapshot[request.product_id].available_quantity:
                return request.product_id
        return None


STOCK_POLICIES = {
    "per_line": PerLineStockPolicy,
    "aggregate": AggregateStockPolicy,
}


def stock_policy_for(mode: str) -> StockPolicy:
    try:
        return STOCK_POLICIES[mode]()
    except KeyError:
        raise ValueError(
            f"Unknown stock check mode {mode!r}, expected one of {sorted(STOCK_POLICIES)}"
        ) from None


def index_products(products: Sequence[Product]) -> dict[str, Product]:
    """Map product id to snapshot; a repeated id keeps its first snapshot."""
    snapshot: dict[str, Product] = {}
    for product in products:
        snapshot.setdefault(product.id, product)
    return snapshot


class OrderValidator:
    def __init__(self, stock_policy: Optional[StockPolicy] = None):
        self.stock_policy = stock_policy or PerLineStockPolicy()

    def validate(
        self,
        customer: Optional[Customer],
        requests: Sequence[OrderLineRequest],
        products: Sequence[Product],
    ) -> Result[ValidatedOrder, OrderError]:
        if customer is None:
            return Failure(CustomerNotFound())

        if not products:
            return Failure(NoProductsFound())

        snapshot = index_products(products)

        for request in requests:
            if request.product_id not in snapshot:
                return Failure(ProductNotFound(request.product_id))

        unavailable = self.stock_policy.first_unavailable(requests, snapshot)
        if unavailable is not None:
            return Failure(InsufficientStock(unavailable))

        prices = {product_id: product.unit_price for product_id, product in snapshot.items()}
        return Success(
            ValidatedOrder(customer=customer, requests=tuple(requests), prices=prices)
        )
