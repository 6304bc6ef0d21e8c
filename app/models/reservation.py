"""
Reservation Models
"""
from sqlalchemy import Column, String, Numeric, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.core import Base
from .base import IdMixin, utc_now

class Reservation(Base, IdMixin):
    """Hold on one unit of a product for a customer"""
    __tablename__ = "reservation"
    
    reservation_code = Column(String(30), unique=True, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customer.id"), index=True)
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False, index=True)
    reserved_price = Column(Numeric(12, 2))
    notes = Column(Text)
    
    status = Column(String(20), nullable=False, default="Pending", index=True)  # Pending, Confirmed, Declined, Cancelled
    
    created_by = Column(String(50))
    reserved_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
    
    # Relationships
    customer = relationship("Customer", back_populates="reservations")
    product = relationship("Product", back_populates="reservations")
