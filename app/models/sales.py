"""
Sales Order Models
"""
from sqlalchemy import Column, String, Numeric, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.core import Base
from .base import IdMixin, utc_now

class SalesOrder(Base, IdMixin):
    """Completed purchase with payment totals"""
    __tablename__ = "sales_order"
    
    order_number = Column(String(30), unique=True, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customer.id"), index=True)
    
    # Amounts
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    change_amount = Column(Numeric(12, 2), nullable=False, default=0)
    
    # Status
    status = Column(String(20), nullable=False, default="Paid")
    payment_status = Column(String(20), nullable=False, default="Paid")
    
    created_by = Column(String(50))
    ordered_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    
    # Relationships
    customer = relationship("Customer", back_populates="sales_orders")
    items = relationship("SalesOrderItem", back_populates="order", cascade="all, delete-orphan")

class SalesOrderItem(Base, IdMixin):
    """Sales Order Line"""
    __tablename__ = "sales_order_item"
    
    sales_order_id = Column(Integer, ForeignKey("sales_order.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
    
    # Relationships
    order = relationship("SalesOrder", back_populates="items")
    product = relationship("Product")
