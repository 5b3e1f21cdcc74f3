from decimal import Decimal

import pytest
from returns.result import Failure, Success

from order_service.application.validator import (
    AggregateStockPolicy,
    OrderValidator,
    PerLineStockPolicy,
    index_products,
    stock_policy_for,
)
from order_service.domain.entities import Customer, OrderLineRequest, Product
from order_service.domain.errors import (
    CustomerNotFound,
    InsufficientStock,
    NoProductsFound,
    ProductNotFound,
)

CUSTOMER = Customer(id="C1")
P1 = Product(id="P1", unit_price=Decimal("10"), available_quantity=5)
P2 = Product(id="P2", unit_price=Decimal("3.25"), available_quantity=1)


def line(product_id, quantity):
    return OrderLineRequest(product_id=product_id, requested_quantity=quantity)


def test_missing_customer_wins_over_everything_else():
    result = OrderValidator().validate(None, [line("P9", 100)], [])
    assert result == Failure(CustomerNotFound())


def test_no_products_found():
    result = OrderValidator().validate(CUSTOMER, [line("P9", 1)], [])
    assert result.failure() == NoProductsFound()


def test_empty_request_fails_as_no_products_found():
    result = OrderValidator().validate(CUSTOMER, [], [])
    assert result.failure() == NoProductsFound()


def test_first_unknown_product_in_request_order():
    requests = [line("P1", 1), line("P8", 1), line("P9", 1)]
    result = OrderValidator().validate(CUSTOMER, requests, [P1])
    assert result.failure() == ProductNotFound("P8")


def test_unknown_product_reported_before_insufficient_stock():
    requests = [line("P1", 50), line("P9", 1)]
    result = OrderValidator().validate(CUSTOMER, requests, [P1])
    assert result.failure() == ProductNotFound("P9")


def test_first_insufficient_line_in_request_order():
    requests = [line("P1", 1), line("P2", 2), line("P1", 6)]
    result = OrderValidator().validate(CUSTOMER, requests, [P1, P2])
    assert result.failure() == InsufficientStock("P2")


def test_exact_stock_is_enough():
    result = OrderValidator().validate(CUSTOMER, [line("P1", 5)], [P1])
    assert isinstance(result, Success)


def test_success_keeps_request_order_and_snapshot_prices():
    requests = [line("P2", 1), line("P1", 3)]
    validated = OrderValidator().validate(CUSTOMER, requests, [P1, P2]).unwrap()
    assert validated.customer == CUSTOMER
    assert [r.product_id for r in validated.requests] == ["P2", "P1"]
    assert validated.prices == {"P1": Decimal("10"), "P2": Decimal("3.25")}


def test_per_line_policy_allows_duplicates_that_jointly_overrequest():
    requests = [line("P1", 3), line("P1", 3)]
    result = OrderValidator(PerLineStockPolicy()).validate(CUSTOMER, requests, [P1])
    assert isinstance(result, Success)


def test_aggregate_policy_rejects_duplicates_that_jointly_overrequest():
    requests = [line("P2", 1), line("P1", 3), line("P1", 3)]
    result = OrderValidator(AggregateStockPolicy()).validate(CUSTOMER, requests, [P1, P2])
    assert result.failure() == InsufficientStock("P1")


def test_aggregate_policy_accepts_duplicates_within_stock():
    requests = [line("P1", 2), line("P1", 3)]
    result = OrderValidator(AggregateStockPolicy()).validate(CUSTOMER, requests, [P1])
    assert isinstance(result, Success)


def test_repeated_snapshot_entries_collapse_to_the_first():
    stale = Product(id="P1", unit_price=Decimal("99"), available_quantity=0)
    assert index_products([P1, stale]) == {"P1": P1}


@pytest.mark.parametrize("mode, expected", [
    ("per_line", PerLineStockPolicy),
    ("aggregate", AggregateStockPolicy),
])
def test_stock_policy_for(mode, expected):
    assert isinstance(stock_policy_for(mode), expected)


def test_stock_policy_for_unknown_mode():
    with pytest.raises(ValueError, match="Unknown stock check mode"):
        stock_policy_for("optimistic")


def test_request_line_requires_positive_quantity():
    with pytest.raises(ValueError):
        line("P1", 0)


def test_error_messages():
    assert CustomerNotFound().message == "Customer does not exist"
    assert NoProductsFound().message == "No product was found for the given IDs"
    assert ProductNotFound("P9").message == "product P9 was not found"
    assert InsufficientStock("P1").message == "product P1 is not available for the given quantity"
    assert InsufficientStock("P1").code == "INSUFFICIENT_STOCK"
