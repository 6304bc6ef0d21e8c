"""
Category Schemas
"""
from pydantic import BaseModel
from typing import Optional

class CategoryCreate(BaseModel):
    name: Optional[str] = None
