"""
Sales Order Schemas
"""
from pydantic import BaseModel
from typing import Optional, Union
from decimal import Decimal

from .customer import CustomerRef

class SaleOrderCreate(BaseModel):
    product_id: int
    quantity: int = 1
    unit_price: Optional[Decimal] = None  # Defaults to product retail price
    amount_paid: Optional[Decimal] = None  # Defaults to the order total
    customer: Optional[CustomerRef] = None
    created_by: Optional[Union[int, str]] = None

class SaleOrderResult(BaseModel):
    order_id: int
    order_number: str
    total_amount: Decimal
    amount_paid: Decimal
    change_amount: Decimal
    new_stock: int
