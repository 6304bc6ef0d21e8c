"""
Customer Schemas
"""
from pydantic import BaseModel
from typing import Optional

class CustomerRef(BaseModel):
    """Identifies an existing customer or describes one to create"""
    customer_id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
