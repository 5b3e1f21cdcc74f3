from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from order_service.infrastructure.db import get_db
from order_service.application.catalog import CustomerService, ProductService
from order_service.application.schemas import CustomerCreate, CustomerRead, ProductCreate, ProductRead

customers_router = APIRouter(prefix="/customers", tags=["customers"])
products_router = APIRouter(prefix="/products", tags=["products"])

@customers_router.get("/", response_model=list[CustomerRead])
def list_customers(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records to return"),
):
    return CustomerService(db).list()[skip:skip + limit]

@customers_router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    customer = CustomerService(db).get(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

@customers_router.post("/", response_model=CustomerRead, status_code=201)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    service = CustomerService(db)
    if service.find_by_email(payload.email):
        raise HTTPException(status_code=400, detail="This e-mail is already assigned to a customer")
    return service.create(payload)

@products_router.get("/", response_model=list[ProductRead])
def list_products(db: Session = Depends(get_db)):
    return [ProductRead.model_validate(p) for p in ProductService(db).list()]

@products_router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: str, db: Session = Depends(get_db)):
    product = ProductService(db).get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductRead.model_validate(product)

@products_router.post("/", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    service = ProductService(db)
    if service.find_by_name(payload.name):
        raise HTTPException(status_code=400, detail="There is already one product with this name")
    return ProductRead.model_validate(service.create(payload))
