# Services Package
from .stock_service import StockService, stock_level
from .customer_service import CustomerService
from .category_service import CategoryService
from .product_service import ProductService
from .reservation_service import ReservationService
from .sales_service import SalesService

__all__ = [
    "StockService",
    "stock_level",
    "CustomerService",
    "CategoryService",
    "ProductService",
    "ReservationService",
    "SalesService",
]
