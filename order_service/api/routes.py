from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from returns.result import Failure
from sqlalchemy.orm import Session
from order_service.core_settings import get_settings
from order_service.infrastructure.db import get_db
from order_service.infrastructure.repositories import SqlAlchemyOrderRepository, SqlAlchemyUnitOfWork
from order_service.application.service import CreateOrderService
from order_service.application.validator import OrderValidator, stock_policy_for
from order_service.application.schemas import OrderCreate, OrderRead, ErrorRead
from order_service.domain.entities import OrderLineRequest
from order_service.domain.errors import OrderError, PersistenceFailure
from order_service.domain.repositories import UnitOfWorkFactory

router = APIRouter(prefix="/orders", tags=["orders"])

def get_uow_factory() -> UnitOfWorkFactory:
    return SqlAlchemyUnitOfWork

def get_order_service(uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)) -> CreateOrderService:
    policy = stock_policy_for(get_settings().STOCK_CHECK_MODE)
    return CreateOrderService(uow_factory, OrderValidator(policy))

def error_response(error: OrderError) -> JSONResponse:
    status_code = 500 if isinstance(error, PersistenceFailure) else 400
    return JSONResponse(
        status_code=status_code,
        content=ErrorRead(detail=error.message, code=error.code).model_dump(),
    )

@router.post(
    "/",
    response_model=OrderRead,
    status_code=201,
    responses={400: {"model": ErrorRead}, 500: {"model": ErrorRead}},
)
def create_order(payload: OrderCreate, service: CreateOrderService = Depends(get_order_service)):
    lines = [OrderLineRequest(product_id=p.id, requested_quantity=p.quantity) for p in payload.products]
    result = service.create_order(payload.customer_id, lines)
    if isinstance(result, Failure):
        return error_response(result.failure())
    return OrderRead.from_order(result.unwrap())

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: str, db: Session = Depends(get_db)):
    order = SqlAlchemyOrderRepository(db).get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return OrderRead.from_order(order)
