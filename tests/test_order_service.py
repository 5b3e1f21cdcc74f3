import logging
import threading
from decimal import Decimal

import pytest
from returns.result import Failure, Success

from order_service.application.service import CreateOrderService
from order_service.application.validator import AggregateStockPolicy, OrderValidator
from order_service.domain.entities import OrderLine, OrderLineRequest, Product
from order_service.domain.errors import (
    CustomerNotFound,
    InsufficientStock,
    NoProductsFound,
    PersistenceFailure,
    ProductNotFound,
)


def line(product_id, quantity):
    return OrderLineRequest(product_id=product_id, requested_quantity=quantity)


@pytest.fixture
def service(store):
    return CreateOrderService(store.unit_of_work)


def assert_untouched(store):
    assert store.orders == []
    assert store.quantity("P1") == 5
    assert store.quantity("P2") == 10


def test_places_order_and_decrements_stock(service, store):
    result = service.create_order("C1", [line("P1", 3)])

    order = result.unwrap()
    assert order.customer_id == "C1"
    assert order.lines == (OrderLine("P1", 3, Decimal("10")),)
    assert order.total == Decimal("30")
    assert store.orders == [order]
    assert store.quantity("P1") == 2
    assert store.commits == 1


def test_unknown_customer(service, store):
    result = service.create_order("C404", [line("P1", 1)])
    assert result == Failure(CustomerNotFound())
    assert store.update_calls == []
    assert_untouched(store)


def test_no_products_found(service, store):
    result = service.create_order("C1", [line("P8", 1), line("P9", 1)])
    assert result == Failure(NoProductsFound())
    assert_untouched(store)


def test_unknown_product(service, store):
    result = service.create_order("C1", [line("P1", 1), line("P9", 1)])
    assert result == Failure(ProductNotFound("P9"))
    assert_untouched(store)


def test_insufficient_stock_leaves_every_product_untouched(service, store):
    store.products["P1"] = Product(id="P1", unit_price=Decimal("10"), available_quantity=2)

    result = service.create_order("C1", [line("P2", 1), line("P1", 3)])

    assert result == Failure(InsufficientStock("P1"))
    assert store.update_calls == []
    assert store.orders == []
    assert store.quantity("P1") == 2
    assert store.quantity("P2") == 10


def test_decrement_per_product_matches_ordered_quantity(service, store):
    result = service.create_order("C1", [line("P2", 2), line("P1", 1), line("P2", 3)])

    assert isinstance(result, Success)
    [adjustments] = store.update_calls
    assert {a.product_id: a.quantity for a in adjustments} == {"P2": 5, "P1": 1}
    assert store.quantity("P1") == 4
    assert store.quantity("P2") == 5
    assert [l.product_id for l in result.unwrap().lines] == ["P2", "P1", "P2"]


def test_order_keeps_price_seen_at_validation(service, store):
    order = service.create_order("C1", [line("P2", 2)]).unwrap()
    store.set_price("P2", Decimal("99"))

    assert store.orders[0].lines[0].unit_price == Decimal("4.50")
    assert order.total == Decimal("9.00")


def test_replaying_a_request_creates_a_second_order(service, store):
    first = service.create_order("C1", [line("P1", 2)]).unwrap()
    second = service.create_order("C1", [line("P1", 2)]).unwrap()

    assert first.id != second.id
    assert len(store.orders) == 2
    assert store.quantity("P1") == 1


def test_duplicate_lines_over_stock_fail_at_reconciliation(service, store):
    result = service.create_order("C1", [line("P1", 3), line("P1", 3)])

    assert result == Failure(InsufficientStock("P1"))
    [adjustments] = store.update_calls
    assert adjustments[0].quantity == 6
    assert_untouched(store)


def test_duplicate_lines_over_stock_rejected_by_aggregate_policy(store):
    service = CreateOrderService(store.unit_of_work, OrderValidator(AggregateStockPolicy()))

    result = service.create_order("C1", [line("P1", 3), line("P1", 3)])

    assert result == Failure(InsufficientStock("P1"))
    assert store.update_calls == []
    assert_untouched(store)


@pytest.mark.parametrize("step, detail, logged", [
    ("find_customer", "catalog lookup failed", "Catalog lookup failed"),
    ("create_order", "order insert failed", "Order persistence failed"),
    ("update_quantity", "stock update failed", "Stock reconciliation failed, order rolled back"),
    ("commit", "commit failed", "Order commit failed, order and stock rolled back"),
])
def test_storage_failures_become_persistence_failure(service, store, step, detail, logged, caplog):
    store.fail_on.add(step)

    with caplog.at_level(logging.ERROR):
        result = service.create_order("C1", [line("P1", 1)])

    assert result == Failure(PersistenceFailure(detail))
    assert result.failure().code == "PERSISTENCE_FAILURE"
    assert_untouched(store)
    assert logged in [r.getMessage() for r in caplog.records]
    assert any(r.exc_info for r in caplog.records if r.getMessage() == logged)


def test_concurrent_orders_cannot_oversell(store):
    store.products["P1"] = Product(id="P1", unit_price=Decimal("10"), available_quantity=3)
    store.snapshot_barrier = threading.Barrier(2)
    service = CreateOrderService(store.unit_of_work)
    results = []

    def place():
        results.append(service.create_order("C1", [line("P1", 3)]))

    threads = [threading.Thread(target=place) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    successes = [r for r in results if isinstance(r, Success)]
    failures = [r.failure() for r in results if isinstance(r, Failure)]
    assert len(successes) == 1
    assert failures == [InsufficientStock("P1")]
    assert store.quantity("P1") == 0
    assert len(store.orders) == 1
