"""
Reservation Schemas
"""
from pydantic import BaseModel
from typing import Literal, Optional, Union
from decimal import Decimal

from .customer import CustomerRef

ReservationStatus = Literal["Pending", "Confirmed", "Declined", "Cancelled"]

class ReservationCreate(BaseModel):
    product_id: int
    customer: Optional[CustomerRef] = None
    customer_id: Optional[int] = None  # Shortcut for customer={"customer_id": ...}
    reserved_price: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[Union[int, str]] = None
    transaction_id: Optional[str] = None  # Idempotency key for retried submissions

class ReservationResult(BaseModel):
    id: int
    reservation_code: str
    new_stock: Optional[int] = None
    duplicate: bool = False

class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus

class ReservationQuota(BaseModel):
    customer_id: int
    limit: int
    used: int
    remaining: int
