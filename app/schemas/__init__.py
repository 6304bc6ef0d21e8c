# Pydantic Schemas Package
from .product import ProductCreate, ProductUpdate
from .stock import MovementCreate, MovementResult, DecreaseStockRequest
from .customer import CustomerRef
from .category import CategoryCreate
from .reservation import ReservationCreate, ReservationResult, ReservationStatusUpdate, ReservationQuota
from .sales import SaleOrderCreate, SaleOrderResult

__all__ = [
    "ProductCreate", "ProductUpdate",
    "MovementCreate", "MovementResult", "DecreaseStockRequest",
    "CustomerRef",
    "CategoryCreate",
    "ReservationCreate", "ReservationResult", "ReservationStatusUpdate", "ReservationQuota",
    "SaleOrderCreate", "SaleOrderResult",
]
