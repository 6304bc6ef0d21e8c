"""
Inventory Movement Ledger
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.core import Base
from .base import IdMixin, utc_now

class InventoryMovement(Base, IdMixin):
    """Append-only record of a stock change and its cause"""
    __tablename__ = "inventory_movement"
    
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False, index=True)
    
    # Movement info
    change_qty = Column(Integer, nullable=False)  # Signed delta applied to product.stock_quantity
    reason = Column(String(30), nullable=False)  # reservation, sale, adjustment, restock, ...
    
    # Reference
    reference_type = Column(String(30))  # reservation, sales_order, product
    reference_id = Column(String(50))  # ID of related record
    
    # Idempotency key supplied by the client
    transaction_id = Column(String(100), unique=True)
    
    # Metadata
    note = Column(Text)
    created_by = Column(String(50))
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    
    # Relationships
    product = relationship("Product", back_populates="movements")
