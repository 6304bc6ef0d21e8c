"""
API Router - JSON Endpoints
"""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fastapi.responses import JSONResponse
from typing import Optional

from app.core import get_db
from app.core.errors import CustomerNotFound, ProductNotFound
from app.models import InventoryMovement, Product, Reservation, SalesOrder
from app.services import (
    CategoryService, CustomerService, ProductService, ReservationService, SalesService, StockService, stock_level,
)
from app.schemas.category import CategoryCreate
from app.schemas.customer import CustomerRef
from app.schemas.product import ProductCreate, ProductUpdate
from app.schemas.reservation import ReservationCreate, ReservationQuota, ReservationStatusUpdate
from app.schemas.sales import SaleOrderCreate
from app.schemas.stock import DecreaseStockRequest, MovementCreate

api_router = APIRouter(tags=["API"])
logger = logging.getLogger(__name__)


def _money(value) -> Optional[float]:
    return float(value) if value is not None else None


def _product_dict(p: Product) -> dict:
    return {
        "id": p.id,
        "sku": p.sku,
        "name": p.name,
        "brand": p.brand,
        "category": p.category,
        "size": p.size,
        "condition_grade": p.condition_grade,
        "retail_price": _money(p.retail_price),
        "wholesale_price": _money(p.wholesale_price),
        "stock_quantity": p.stock_quantity,
        "low_stock_threshold": p.low_stock_threshold,
        "status": p.status,
        "stock_level": stock_level(p.stock_quantity, p.low_stock_threshold),
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


def _reservation_dict(r: Reservation) -> dict:
    return {
        "id": r.id,
        "reservation_code": r.reservation_code,
        "customer_id": r.customer_id,
        "customer_name": r.customer.full_name if r.customer else None,
        "customer_email": r.customer.email if r.customer else None,
        "product_id": r.product_id,
        "product_name": r.product.name if r.product else None,
        "reserved_price": _money(r.reserved_price),
        "notes": r.notes,
        "status": r.status,
        "created_by": r.created_by,
        "reserved_at": r.reserved_at.isoformat() if r.reserved_at else None,
    }


def _movement_dict(m: InventoryMovement) -> dict:
    return {
        "id": m.id,
        "product_id": m.product_id,
        "product_name": m.product.name if m.product else None,
        "change_qty": m.change_qty,
        "reason": m.reason,
        "reference_type": m.reference_type,
        "reference_id": m.reference_id,
        "transaction_id": m.transaction_id,
        "note": m.note,
        "created_by": m.created_by,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }


def _order_dict(o: SalesOrder) -> dict:
    return {
        "id": o.id,
        "order_number": o.order_number,
        "customer_id": o.customer_id,
        "customer_name": o.customer.full_name if o.customer else "Walk-in Customer",
        "customer_email": o.customer.email if o.customer else None,
        "total_amount": _money(o.total_amount),
        "amount_paid": _money(o.amount_paid),
        "change_amount": _money(o.change_amount),
        "status": o.status,
        "payment_status": o.payment_status,
        "ordered_at": o.ordered_at.isoformat() if o.ordered_at else None,
        "items": [
            {
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else None,
                "quantity": item.quantity,
                "unit_price": _money(item.unit_price),
                "line_total": _money(item.line_total),
            }
            for item in o.items
        ],
    }

# ===================== HEALTH =====================

@api_router.get("/health")
async def api_health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e.__class__.__name__}")
        return JSONResponse(status_code=500, content={"status": "error", "database": "disconnected"})
    return {"status": "ok", "database": "connected"}

# ===================== PRODUCTS =====================

@api_router.get("/products")
async def list_products(
    search: Optional[str] = Query(None),
    include_archived: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    products, total = ProductService.get_products(db, search, not include_archived, page, per_page)
    return {
        "products": [_product_dict(p) for p in products],
        "total": total,
        "page": page,
        "per_page": per_page
    }

@api_router.get("/products/{product_id}")
async def get_product(product_id: int, db: Session = Depends(get_db)):
    product = ProductService.get_product_by_id(db, product_id)
    if not product:
        raise ProductNotFound(product_id=product_id)
    return _product_dict(product)

@api_router.post("/products")
async def create_product(data: ProductCreate, db: Session = Depends(get_db)):
    product = ProductService.create_product(db, data)
    return {"success": True, "id": product.id, "sku": product.sku}

@api_router.put("/products/{product_id}")
async def update_product(product_id: int, data: ProductUpdate, db: Session = Depends(get_db)):
    product = ProductService.update_product(db, product_id, data)
    return {"success": True, **_product_dict(product)}

@api_router.delete("/products/{product_id}")
async def delete_product(product_id: int, db: Session = Depends(get_db)):
    ProductService.archive_product(db, product_id)
    return {"success": True}

@api_router.post("/products/{product_id}/decrease-stock")
async def decrease_stock(product_id: int, data: DecreaseStockRequest, db: Session = Depends(get_db)):
    new_stock = StockService.adjust_stock(
        db, product_id, data.quantity,
        reason=data.reason,
        reference_type="reservation" if data.reason == "reservation" else None,
        reference_id=data.reference_id,
        created_by=data.created_by
    )
    return {"success": True, "newStock": new_stock}

# ===================== CATEGORIES =====================

@api_router.get("/categories")
async def list_categories(db: Session = Depends(get_db)):
    return [{"id": c.id, "name": c.name} for c in CategoryService.get_categories(db)]

@api_router.post("/categories")
async def create_category(data: CategoryCreate, db: Session = Depends(get_db)):
    category, _ = CategoryService.get_or_create(db, data.name)
    return {"id": category.id, "name": category.name}

# ===================== INVENTORY =====================

@api_router.post("/inventory/movements")
async def create_movement(data: MovementCreate, db: Session = Depends(get_db)):
    result = StockService.move_stock(db, data)
    response = {"success": True, "id": result.id}
    if result.duplicate:
        response["duplicate"] = True
    else:
        response["newStock"] = result.new_stock
    return response

@api_router.get("/inventory/movements")
async def list_movements(
    product_id: Optional[int] = Query(None),
    reason: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    movements = StockService.get_recent_movements(db, product_id, reason, limit)
    return [_movement_dict(m) for m in movements]

@api_router.get("/inventory/low-stock")
async def low_stock(db: Session = Depends(get_db)):
    return StockService.get_low_stock(db)

# ===================== RESERVATIONS =====================

@api_router.get("/reservations")
async def list_reservations(
    status: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    reservations = ReservationService.get_reservations(db, status=status, limit=limit)
    return [_reservation_dict(r) for r in reservations]

@api_router.get("/reservations/customer/{customer_id}")
async def list_customer_reservations(customer_id: int, db: Session = Depends(get_db)):
    if not CustomerService.get_customer(db, customer_id):
        raise CustomerNotFound(customer_id=customer_id)
    reservations = ReservationService.get_reservations(db, customer_id=customer_id)
    return [_reservation_dict(r) for r in reservations]

@api_router.get("/reservations/quota", response_model=ReservationQuota)
async def reservation_quota(customer_id: int = Query(...), db: Session = Depends(get_db)):
    if not CustomerService.get_customer(db, customer_id):
        raise CustomerNotFound(customer_id=customer_id)
    return ReservationService.get_quota(db, customer_id)

@api_router.post("/reservations")
async def create_reservation(data: ReservationCreate, db: Session = Depends(get_db)):
    result = ReservationService.create_reservation(db, data)
    response = {"success": True, "id": result.id, "reservation_code": result.reservation_code}
    if result.duplicate:
        response["duplicate"] = True
    return response

@api_router.put("/reservations/{reservation_id}/status")
async def update_reservation_status(
    reservation_id: int,
    data: ReservationStatusUpdate,
    db: Session = Depends(get_db)
):
    reservation = ReservationService.update_status(db, reservation_id, data.status)
    return {"success": True, "id": reservation.id, "status": reservation.status}

# ===================== CUSTOMERS =====================

@api_router.post("/customers")
async def upsert_customer(data: CustomerRef, db: Session = Depends(get_db)):
    customer = CustomerService.upsert_customer(db, data)
    return {"success": True, "id": customer.id}

@api_router.get("/customers/{customer_id}")
async def get_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = CustomerService.get_customer(db, customer_id)
    if not customer:
        raise CustomerNotFound(customer_id=customer_id)
    return {
        "id": customer.id,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
        "email": customer.email,
        "phone": customer.phone,
    }

# ===================== SALES =====================

@api_router.get("/sales/orders")
async def list_sales_orders(limit: int = Query(50, ge=1, le=500), db: Session = Depends(get_db)):
    return [_order_dict(o) for o in SalesService.get_recent_orders(db, limit)]

@api_router.post("/sales/orders")
async def create_sales_order(data: SaleOrderCreate, db: Session = Depends(get_db)):
    result = SalesService.create_sale_order(db, data)
    return {
        "success": True,
        "order_id": result.order_id,
        "order_number": result.order_number,
        "total_amount": float(result.total_amount),
        "amount_paid": float(result.amount_paid),
        "change_amount": float(result.change_amount),
    }
