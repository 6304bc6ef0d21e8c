"""
Product Models
"""
from sqlalchemy import Column, String, Numeric, Integer, CheckConstraint
from sqlalchemy.orm import relationship
from app.core import Base
from .base import IdMixin, TimestampMixin

class Product(Base, IdMixin, TimestampMixin):
    """Product Master"""
    __tablename__ = "product"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),
    )
    
    sku = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(300), nullable=False)
    brand = Column(String(100))
    category = Column(String(100))
    size = Column(String(50))
    condition_grade = Column(String(30), default="New")
    retail_price = Column(Numeric(12, 2), nullable=False, default=0)
    wholesale_price = Column(Numeric(12, 2))
    
    # Stock
    stock_quantity = Column(Integer, nullable=False, default=0)
    initial_stock = Column(Integer, nullable=False, default=0)  # Stock at creation, never changed
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    
    status = Column(String(20), nullable=False, default="active", index=True)  # active, archived
    
    # Relationships
    movements = relationship("InventoryMovement", back_populates="product")
    reservations = relationship("Reservation", back_populates="product")
    
    @property
    def is_active(self) -> bool:
        return self.status == "active"
