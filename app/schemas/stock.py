"""
Stock Schemas
"""
from pydantic import BaseModel
from typing import Optional, Union

class MovementCreate(BaseModel):
    product_id: int
    change_qty: int  # Signed; negative removes stock
    reason: str  # reservation, sale, adjustment, restock, return
    reference_type: Optional[str] = None
    reference_id: Optional[Union[int, str]] = None
    transaction_id: Optional[str] = None
    note: Optional[str] = None
    created_by: Optional[Union[int, str]] = None

class MovementResult(BaseModel):
    id: int
    duplicate: bool = False
    new_stock: Optional[int] = None

class DecreaseStockRequest(BaseModel):
    quantity: int = 1
    reason: str = "reservation"
    reference_id: Optional[Union[int, str]] = None
    created_by: Optional[Union[int, str]] = None
