from .base import IdMixin, TimestampMixin
from .product import Product
from .category import Category
from .customer import Customer
from .stock import InventoryMovement
from .reservation import Reservation
from .sales import SalesOrder, SalesOrderItem

__all__ = [
    # Base
    "IdMixin", "TimestampMixin",
    # Product
    "Product",
    # Category
    "Category",
    # Customer
    "Customer",
    # Stock
    "InventoryMovement",
    # Reservation
    "Reservation",
    # Sales
    "SalesOrder", "SalesOrderItem",
]
