from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from order_service.domain.models import Customer, Product
from .schemas import CustomerCreate, ProductCreate

class CustomerService:
    def __init__(self, db: Session):
        self.db = db

    def list(self):
        return self.db.scalars(select(Customer).order_by(Customer.created_at)).all()

    def get(self, customer_id: str) -> Optional[Customer]:
        return self.db.get(Customer, customer_id)

    def find_by_email(self, email: str) -> Optional[Customer]:
        return self.db.scalars(select(Customer).where(Customer.email == email)).first()

    def create(self, data: CustomerCreate):
        obj = Customer(name=data.name, email=data.email)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def list(self):
        return self.db.scalars(select(Product).order_by(Product.name)).all()

    def get(self, product_id: str) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def find_by_name(self, name: str) -> Optional[Product]:
        return self.db.scalars(select(Product).where(Product.name == name)).first()

    def create(self, data: ProductCreate):
        obj = Product(name=data.name, price=data.price, available_quantity=data.quantity)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj
