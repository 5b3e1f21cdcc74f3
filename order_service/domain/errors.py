from dataclasses import dataclass
from typing import ClassVar


class RepositoryError(Exception):
    """Raised by storage adapters when the underlying engine fails."""


@dataclass(frozen=True)
class OrderError:
    """Base of the caller-visible failures of order creation."""
    code: ClassVar[str] = "ORDER_ERROR"

    @property
    def message(self) -> str:
        return "Order could not be created"


@dataclass(frozen=True)
class CustomerNotFound(OrderError):
    code: ClassVar[str] = "CUSTOMER_NOT_FOUND"

    @property
    def message(self) -> str:
        return "Customer does not exist"


@dataclass(frozen=True)
class NoProductsFound(OrderError):
    code: ClassVar[str] = "NO_PRODUCTS_FOUND"

    @property
    def message(self) -> str:
        return "No product was found for the given IDs"


@dataclass(frozen=True)
class ProductNotFound(OrderError):
    product_id: str
    code: ClassVar[str] = "PRODUCT_NOT_FOUND"

    @property
    def message(self) -> str:
        return f"product {self.product_id} was not found"


@dataclass(frozen=True)
class InsufficientStock(OrderError):
    product_id: str
    code: ClassVar[str] = "INSUFFICIENT_STOCK"

    @property
    def message(self) -> str:
        return f"product {self.product_id} is not available for the given quantity"


@dataclass(frozen=True)
class PersistenceFailure(OrderError):
    # Order row and stock may disagree if this escapes a unit of work; needs an operator.
    detail: str
    code: ClassVar[str] = "PERSISTENCE_FAILURE"

    @property
    def message(self) -> str:
        return f"Order could not be persisted: {self.detail}"
