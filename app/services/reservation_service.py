"""
Reservation Service - Reservation creation and status workflow

Creating a reservation holds exactly one unit: the reservation row, the
stock decrement and its ledger movement are written in one transaction and
events go out only after it commits. Status changes never touch stock; a
Declined or Cancelled reservation is not restocked automatically.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core import atomic, settings
from app.core.errors import (
    DailyLimitExceeded, DuplicateSubmission, InsufficientStock,
    InvalidStatusTransition, ProductNotFound, ReservationNotFound, ValidationError,
)
from app.models import Customer, Product, Reservation
from app.models.base import utc_now
from app.realtime import broadcaster
from app.schemas.customer import CustomerRef
from app.schemas.reservation import ReservationCreate, ReservationResult
from .customer_service import CustomerService
from .numbering import as_ref, generate_reference
from .stock_service import StockService

logger = logging.getLogger(__name__)


def _day_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    now = now or datetime.now(timezone.utc)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


class ReservationService:
    """Reservation business logic"""
    
    # Valid status transitions
    STATUS_TRANSITIONS = {
        "Pending": ["Confirmed", "Declined", "Cancelled"],
        "Confirmed": ["Cancelled"],
        "Declined": [],
        "Cancelled": [],
    }
    
    @staticmethod
    def get_reservation(db: Session, reservation_id: int) -> Optional[Reservation]:
        return db.query(Reservation).filter(Reservation.id == reservation_id).first()
    
    @staticmethod
    def get_reservations(
        db: Session,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 200
    ) -> List[Reservation]:
        """Get reservations, newest first"""
        query = db.query(Reservation)
        
        if customer_id:
            query = query.filter(Reservation.customer_id == customer_id)
        
        if status and status != "all":
            query = query.filter(Reservation.status == status)
        
        return query.order_by(Reservation.reserved_at.desc(), Reservation.id.desc()).limit(limit).all()
    
    @staticmethod
    def count_today(db: Session, customer_id: int) -> int:
        start, end = _day_bounds()
        return db.query(func.count(Reservation.id)).filter(
            Reservation.customer_id == customer_id,
            Reservation.reserved_at >= start,
            Reservation.reserved_at < end
        ).scalar() or 0
    
    @staticmethod
    def get_quota(db: Session, customer_id: int) -> Dict:
        limit = settings.RESERVATION_DAILY_LIMIT
        used = ReservationService.count_today(db, customer_id)
        return {
            "customer_id": customer_id,
            "limit": limit,
            "used": used,
            "remaining": max(limit - used, 0),
        }
    
    @staticmethod
    def _check_daily_limit(db: Session, customer_id: int) -> None:
        limit = settings.RESERVATION_DAILY_LIMIT
        if limit <= 0:
            return
        # Serialise reservations per customer so the count cannot be raced
        db.query(Customer).filter(Customer.id == customer_id).with_for_update().one()
        used = ReservationService.count_today(db, customer_id)
        if used >= limit:
            raise DailyLimitExceeded(limit=limit, used=used)
    
    @staticmethod
    def _find_submitted(db: Session, transaction_id: str) -> Optional[Reservation]:
        movement = StockService.get_movement_by_transaction(db, transaction_id)
        if movement is None:
            return None
        reference = movement.reference_id or ""
        reservation = None
        if movement.reference_type == "reservation" and reference.isdigit():
            reservation = ReservationService.get_reservation(db, int(reference))
        if reservation is None:
            raise ValidationError("transaction_id was already used for another operation")
        return reservation
    
    @staticmethod
    def create_reservation(db: Session, data: ReservationCreate) -> ReservationResult:
        """Reserve one unit of a product"""
        if data.transaction_id:
            existing = ReservationService._find_submitted(db, data.transaction_id)
            if existing is not None:
                return ReservationResult(
                    id=existing.id, reservation_code=existing.reservation_code, duplicate=True
                )
        
        product = db.query(Product).filter(Product.id == data.product_id).first()
        if not product or product.status != "active":
            raise ProductNotFound(product_id=data.product_id)
        if product.stock_quantity < 1:
            raise InsufficientStock(available=product.stock_quantity, requested=1, product_id=product.id)
        
        customer_ref = data.customer
        if customer_ref is None and data.customer_id is not None:
            customer_ref = CustomerRef(customer_id=data.customer_id)
        
        reserved_price = data.reserved_price if data.reserved_price is not None else product.retail_price
        
        try:
            with atomic(db):
                customer = CustomerService.resolve_customer(db, customer_ref)
                if customer is not None:
                    ReservationService._check_daily_limit(db, customer.id)
                
                reservation = Reservation(
                    reservation_code=generate_reference("RES"),
                    customer_id=customer.id if customer else None,
                    product_id=product.id,
                    reserved_price=reserved_price,
                    notes=data.notes,
                    status="Pending",
                    created_by=as_ref(data.created_by)
                )
                db.add(reservation)
                db.flush()
                
                new_stock = StockService.decrease_stock(db, product.id, 1)
                StockService.record_movement(
                    db, product.id, -1, "reservation",
                    reference_type="reservation",
                    reference_id=reservation.id,
                    created_by=data.created_by,
                    transaction_id=data.transaction_id
                )
                
                reservation_id = reservation.id
                reservation_code = reservation.reservation_code
                customer_id = reservation.customer_id
        except DuplicateSubmission:
            # A concurrent retry with the same transaction_id committed first
            existing = ReservationService._find_submitted(db, data.transaction_id)
            if existing is None:
                raise ValidationError("transaction_id was already used for another operation")
            return ReservationResult(
                id=existing.id, reservation_code=existing.reservation_code, duplicate=True
            )
        except (InsufficientStock, DailyLimitExceeded) as e:
            logger.warning(f"Reservation rejected for product {data.product_id}: {e.message}")
            raise
        
        logger.info(f"Reservation {reservation_code} created for product {product.id} (stock now {new_stock})")
        
        broadcaster.publish("reservation:created", {
            "id": reservation_id,
            "reservation_code": reservation_code,
            "product_id": product.id,
            "customer_id": customer_id,
        })
        broadcaster.publish("reservations:updated")
        StockService.announce_stock_change(product, new_stock, -1)
        broadcaster.publish("sales:updated")
        
        return ReservationResult(id=reservation_id, reservation_code=reservation_code, new_stock=new_stock)
    
    @staticmethod
    def update_status(db: Session, reservation_id: int, new_status: str) -> Reservation:
        """
        Move a reservation along its workflow.
        
        Re-submitting the current status is a no-op. Stock is left as is.
        """
        reservation = ReservationService.get_reservation(db, reservation_id)
        if not reservation:
            raise ReservationNotFound(reservation_id=reservation_id)
        
        current = reservation.status
        if new_status == current:
            return reservation
        
        if new_status not in ReservationService.STATUS_TRANSITIONS.get(current, []):
            raise InvalidStatusTransition(current, new_status)
        
        with atomic(db):
            # Compare-and-set so a concurrent transition cannot be overwritten
            result = db.execute(
                update(Reservation)
                .where(Reservation.id == reservation_id, Reservation.status == current)
                .values(status=new_status, updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidStatusTransition(current, new_status)
        
        db.refresh(reservation)
        logger.info(f"Reservation {reservation.reservation_code}: {current} -> {new_status}")
        
        broadcaster.publish("reservation:status-changed", {
            "id": reservation.id,
            "status": new_status,
            "customer_id": reservation.customer_id,
            "created_by": reservation.created_by,
        })
        broadcaster.publish("reservations:updated")
        broadcaster.publish("sales:updated")
        
        return reservation
