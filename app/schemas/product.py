"""
Product Schemas
"""
from pydantic import BaseModel
from typing import Optional, Union
from decimal import Decimal

class ProductCreate(BaseModel):
    name: str
    sku: Optional[str] = None  # Generated when omitted
    brand: Optional[str] = None
    category: Optional[str] = None
    size: Optional[str] = None
    condition_grade: str = "New"
    retail_price: Decimal
    wholesale_price: Optional[Decimal] = None
    stock: int = 0
    low_stock_threshold: Optional[int] = None

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    size: Optional[str] = None
    condition_grade: Optional[str] = None
    retail_price: Optional[Decimal] = None
    wholesale_price: Optional[Decimal] = None
    stock_quantity: Optional[int] = None  # Converted into an adjustment movement
    low_stock_threshold: Optional[int] = None
    created_by: Optional[Union[int, str]] = None
