"""
Category Models
"""
from sqlalchemy import Column, String
from app.core import Base
from .base import IdMixin, TimestampMixin

class Category(Base, IdMixin, TimestampMixin):
    """Product category; products refer to it by name"""
    __tablename__ = "category"
    
    name = Column(String(100), unique=True, nullable=False, index=True)
