"""Stock reconciliation for a freshly created order.

Decrements are aggregated per product so ``update_quantity`` receives exactly
one adjustment per distinct product. The repository applies each one as a
conditional decrement; the snapshot-based ``new_quantity`` is what the stock
will read after the write if no other order interleaved.
"""

from typing import Mapping, Sequence

from returns.result import Result, Success

from order_service.domain.entities import OrderLine, Product, StockAdjustment
from order_service.domain.errors import OrderError
from order_service.domain.repositories import ProductRepository
from shared.core import get_logger

logger = get_logger(__name__)


class StockReconciler:
    def __init__(self, products: ProductRepository):
        self.products = products

    @staticmethod
    def plan(
        lines: Sequence[OrderLine], snapshot: Mapping[str, Product]
    ) -> list[StockAdjustment]:
        totals: dict[str, int] = {}
        for line in lines:
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return [
            StockAdjustment(
                product_id=product_id,
                quantity=quantity,
                new_quantity=snapshot[product_id].available_quantity - quantity,
            )
            for product_id, quantity in totals.items()
        ]

    def reconcile(
        self, lines: Sequence[OrderLine], snapshot: Mapping[str, Product]
    ) -> Result[list[StockAdjustment], OrderError]:
        adjustments = self.plan(lines, snapshot)
        logger.debug(
            "Applying stock adjustments",
            extra={'extra_fields': {
                'adjustments': [
                    {'product_id': a.product_id, 'quantity': a.quantity, 'new_quantity': a.new_quantity}
                    for a in adjustments
                ]
            }}
        )
        return self.products.update_quantity(adjustments).map(lambda _: adjustments)
