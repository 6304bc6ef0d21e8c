"""
Stock Service - Stock mutation and the inventory movement ledger

Every change to Product.stock_quantity goes through apply_delta() and is
paired with exactly one InventoryMovement row written in the same
transaction, so stock_quantity == initial_stock + sum(change_qty) holds per
product. Neither primitive commits; callers wrap them in atomic().
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import atomic, settings
from app.core.errors import (
    DuplicateSubmission, InsufficientStock, ProductNotFound, ValidationError,
)
from app.models import InventoryMovement, Product
from app.models.base import utc_now
from app.realtime import broadcaster
from app.schemas.stock import MovementCreate, MovementResult
from .numbering import as_ref

logger = logging.getLogger(__name__)


def stock_level(stock: int, threshold: Optional[int] = None) -> Dict:
    """Classify a stock count against a product's low-stock threshold"""
    value = max(int(stock or 0), 0)
    limit = threshold if threshold and threshold > 0 else settings.DEFAULT_LOW_STOCK_THRESHOLD
    
    if value <= 0:
        return {"status": "out", "label": "Out of Stock", "severity": "critical", "percentage": 0.0}
    if value <= limit:
        severity = "critical" if value <= max(1, limit // 2) else "warning"
        percentage = max(5.0, min(100.0, value / limit * 100))
        return {"status": "low", "label": "Low Stock", "severity": severity, "percentage": percentage}
    if value <= limit * 2:
        percentage = min(100.0, value / (limit * 2) * 100)
        return {"status": "medium", "label": "Medium Stock", "severity": "info", "percentage": percentage}
    return {"status": "high", "label": "In Stock", "severity": "info", "percentage": 100.0}


class StockService:
    """Stock/Inventory business logic"""
    
    @staticmethod
    def apply_delta(db: Session, product_id: int, delta: int) -> int:
        """
        Apply a signed delta to a product's stock and return the new count.
        
        A single conditional UPDATE performs the floor check and the write, so
        concurrent callers cannot both pass the check on the last unit.
        """
        if delta == 0:
            raise ValidationError("change_qty must not be zero")
        
        result = db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity + delta >= 0)
            .values(stock_quantity=Product.stock_quantity + delta, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        
        if result.rowcount == 0:
            available = db.execute(
                select(Product.stock_quantity).where(Product.id == product_id)
            ).scalar_one_or_none()
            if available is None:
                raise ProductNotFound(product_id=product_id)
            raise InsufficientStock(available=available, requested=-delta, product_id=product_id)
        
        # Reload so instances already in the session see the new count
        product = db.get(Product, product_id, populate_existing=True)
        return product.stock_quantity
    
    @staticmethod
    def decrease_stock(db: Session, product_id: int, quantity: int) -> int:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        return StockService.apply_delta(db, product_id, -quantity)
    
    @staticmethod
    def increase_stock(db: Session, product_id: int, quantity: int) -> int:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        return StockService.apply_delta(db, product_id, quantity)
    
    @staticmethod
    def get_movement_by_transaction(db: Session, transaction_id: str) -> Optional[InventoryMovement]:
        return db.query(InventoryMovement).filter(
            InventoryMovement.transaction_id == transaction_id
        ).first()
    
    @staticmethod
    def record_movement(
        db: Session,
        product_id: int,
        change_qty: int,
        reason: str,
        reference_type: Optional[str] = None,
        reference_id=None,
        created_by=None,
        transaction_id: Optional[str] = None,
        note: Optional[str] = None
    ) -> InventoryMovement:
        """
        Append a ledger row.
        
        Raises DuplicateSubmission when transaction_id was already recorded,
        including when a concurrent request wins the unique index first.
        """
        if transaction_id:
            existing = StockService.get_movement_by_transaction(db, transaction_id)
            if existing is not None:
                raise DuplicateSubmission(existing.id)
        
        movement = InventoryMovement(
            product_id=product_id,
            change_qty=change_qty,
            reason=reason,
            reference_type=reference_type,
            reference_id=as_ref(reference_id),
            transaction_id=transaction_id,
            note=note,
            created_by=as_ref(created_by)
        )
        
        try:
            with db.begin_nested():
                db.add(movement)
        except IntegrityError:
            existing = StockService.get_movement_by_transaction(db, transaction_id) if transaction_id else None
            if existing is None:
                raise
            raise DuplicateSubmission(existing.id)
        
        return movement
    
    @staticmethod
    def move_stock(db: Session, movement_data: MovementCreate) -> MovementResult:
        """Record a movement and apply it to stock as one idempotent operation"""
        if not movement_data.reason or not movement_data.reason.strip():
            raise ValidationError("product_id, change_qty, and reason are required")
        if movement_data.change_qty == 0:
            raise ValidationError("change_qty must not be zero")
        
        product = db.get(Product, movement_data.product_id)
        if not product:
            raise ProductNotFound(product_id=movement_data.product_id)
        
        try:
            with atomic(db):
                movement = StockService.record_movement(
                    db,
                    product_id=product.id,
                    change_qty=movement_data.change_qty,
                    reason=movement_data.reason.strip(),
                    reference_type=movement_data.reference_type,
                    reference_id=movement_data.reference_id,
                    created_by=movement_data.created_by,
                    transaction_id=movement_data.transaction_id,
                    note=movement_data.note
                )
                new_stock = StockService.apply_delta(db, product.id, movement_data.change_qty)
                movement_id = movement.id
        except DuplicateSubmission as dup:
            logger.info(f"Duplicate movement submission {movement_data.transaction_id} -> {dup.movement_id}")
            return MovementResult(id=dup.movement_id, duplicate=True)
        
        logger.info(
            f"Movement {movement_id}: product {product.id} {movement_data.change_qty:+d} "
            f"({movement_data.reason}) -> {new_stock}"
        )
        broadcaster.publish("inventory:movement-created", {"id": movement_id, "product_id": product.id})
        StockService.announce_stock_change(product, new_stock, movement_data.change_qty)
        
        return MovementResult(id=movement_id, duplicate=False, new_stock=new_stock)
    
    @staticmethod
    def adjust_stock(
        db: Session,
        product_id: int,
        quantity: int,
        reason: str = "reservation",
        reference_type: Optional[str] = "reservation",
        reference_id=None,
        created_by=None
    ) -> int:
        """Decrease stock by `quantity` with its ledger row; returns the new stock"""
        product = db.get(Product, product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        if product.stock_quantity < quantity:
            raise InsufficientStock(available=product.stock_quantity, requested=quantity, product_id=product_id)
        
        with atomic(db):
            new_stock = StockService.decrease_stock(db, product_id, quantity)
            StockService.record_movement(
                db, product_id, -quantity, reason,
                reference_type=reference_type,
                reference_id=reference_id,
                created_by=created_by
            )
        
        StockService.announce_stock_change(product, new_stock, -quantity)
        return new_stock
    
    @staticmethod
    def announce_stock_change(product: Product, new_stock: int, delta: int) -> None:
        """Publish the stock events for a committed change"""
        broadcaster.publish("inventory:updated")
        broadcaster.publish("product:stock-changed", {"id": product.id, "newStock": new_stock})
        
        threshold = product.low_stock_threshold
        before = stock_level(new_stock - delta, threshold)
        after = stock_level(new_stock, threshold)
        if after["status"] in ("low", "out") and before["status"] != after["status"]:
            broadcaster.publish(
                "inventory:low-stock",
                {
                    "id": product.id,
                    "name": product.name,
                    "stock": new_stock,
                    "status": after["status"],
                    "severity": after["severity"],
                },
                room="admin"
            )
    
    @staticmethod
    def get_recent_movements(
        db: Session,
        product_id: Optional[int] = None,
        reason: Optional[str] = None,
        limit: int = 100
    ) -> List[InventoryMovement]:
        """Get recent stock movements"""
        query = db.query(InventoryMovement)
        
        if product_id:
            query = query.filter(InventoryMovement.product_id == product_id)
        
        if reason:
            query = query.filter(InventoryMovement.reason == reason)
        
        return query.order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc()).limit(limit).all()
    
    @staticmethod
    def get_low_stock(db: Session) -> List[Dict]:
        """Active products currently in the low or out band"""
        products = db.query(Product).filter(Product.status == "active").order_by(Product.stock_quantity).all()
        
        results = []
        for p in products:
            level = stock_level(p.stock_quantity, p.low_stock_threshold)
            if level["status"] in ("low", "out"):
                results.append({
                    "id": p.id,
                    "sku": p.sku,
                    "name": p.name,
                    "stock_quantity": p.stock_quantity,
                    "low_stock_threshold": p.low_stock_threshold,
                    "stock_level": level
                })
        
        return results
