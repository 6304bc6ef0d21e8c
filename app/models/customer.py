"""
Customer Models
"""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from app.core import Base
from .base import IdMixin, TimestampMixin

class Customer(Base, IdMixin, TimestampMixin):
    """Customer"""
    __tablename__ = "customer"
    
    first_name = Column(String(100), nullable=False, default="Customer")
    last_name = Column(String(100), default="")
    email = Column(String(200), unique=True, index=True)  # Stored lower-cased
    phone = Column(String(40))
    
    # Relationships
    reservations = relationship("Reservation", back_populates="customer")
    sales_orders = relationship("SalesOrder", back_populates="customer")
    
    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
