"""
Product Service - Business Logic for Products
"""
import logging
from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from typing import List, Optional, Tuple
from uuid import uuid4

from app.core import atomic, settings
from app.core.errors import InvalidPrice, ProductNotFound, ValidationError
from app.models import Product
from app.realtime import broadcaster
from app.schemas.product import ProductCreate, ProductUpdate
from .stock_service import StockService

logger = logging.getLogger(__name__)

class ProductService:
    """Product business logic"""
    
    @staticmethod
    def get_products(
        db: Session,
        search: Optional[str] = None,
        active_only: bool = True,
        page: int = 1,
        per_page: int = 50
    ) -> Tuple[List[Product], int]:
        """Get products with filters and pagination"""
        query = db.query(Product)
        
        if active_only:
            query = query.filter(Product.status == "active")
        
        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Product.sku.ilike(search_term),
                    Product.name.ilike(search_term),
                    Product.brand.ilike(search_term)
                )
            )
        
        total = query.count()
        
        products = query.order_by(Product.created_at.desc(), Product.id.desc())\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()
        
        return products, total
    
    @staticmethod
    def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
        """Get product by ID"""
        return db.query(Product).filter(Product.id == product_id).first()
    
    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> Product:
        """Create new product; its starting stock is kept as initial_stock"""
        if not product_data.name or not product_data.name.strip():
            raise ValidationError("Name, price, and stock are required")
        if product_data.retail_price is None or product_data.retail_price <= 0:
            raise InvalidPrice(retail_price=str(product_data.retail_price))
        if product_data.stock < 0:
            raise ValidationError("Stock cannot be negative")
        
        sku = (product_data.sku or "").strip() or f"SKU-{uuid4().hex[:8].upper()}-{uuid4().hex[:4].upper()}"
        if db.query(Product.id).filter(Product.sku == sku).first():
            raise ValidationError("SKU already exists", sku=sku)
        threshold = product_data.low_stock_threshold or settings.DEFAULT_LOW_STOCK_THRESHOLD
        
        with atomic(db):
            product = Product(
                sku=sku,
                name=product_data.name.strip(),
                brand=product_data.brand,
                category=product_data.category,
                size=product_data.size,
                condition_grade=product_data.condition_grade,
                retail_price=product_data.retail_price,
                wholesale_price=product_data.wholesale_price,
                stock_quantity=product_data.stock,
                initial_stock=product_data.stock,
                low_stock_threshold=threshold,
                status="active"
            )
            try:
                with db.begin_nested():
                    db.add(product)
            except IntegrityError:
                # Same SKU inserted concurrently
                raise ValidationError("SKU already exists", sku=sku)
        
        db.refresh(product)
        logger.info(f"Created product {product.id} ({product.sku}) with stock {product.stock_quantity}")
        
        broadcaster.publish("product:created", {"id": product.id})
        broadcaster.publish("inventory:updated")
        return product
    
    @staticmethod
    def update_product(db: Session, product_id: int, product_data: ProductUpdate) -> Product:
        """
        Update product fields.
        
        A new stock_quantity is not written directly: the difference is
        recorded as an adjustment movement and applied through the ledger.
        """
        # Lock the row so the stock delta is computed against the current count
        product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if not product:
            raise ProductNotFound(product_id=product_id)

        changes = product_data.model_dump(exclude_unset=True, exclude={"stock_quantity", "created_by"})
        if "name" in changes:
            if not changes["name"] or not changes["name"].strip():
                raise ValidationError("Name cannot be empty")
            changes["name"] = changes["name"].strip()
        if "retail_price" in changes and (changes["retail_price"] is None or changes["retail_price"] <= 0):
            raise InvalidPrice(retail_price=str(changes["retail_price"]))
        if "low_stock_threshold" in changes and (changes["low_stock_threshold"] or 0) <= 0:
            raise ValidationError("Low stock threshold must be a positive integer")
        
        target_stock = product_data.stock_quantity
        if target_stock is not None and target_stock < 0:
            raise ValidationError("Stock cannot be negative")
        delta = target_stock - product.stock_quantity if target_stock is not None else 0
        
        new_stock = None
        with atomic(db):
            # Stock first: apply_delta reloads the row and would discard pending edits
            if delta:
                new_stock = StockService.apply_delta(db, product.id, delta)
                StockService.record_movement(
                    db, product.id, delta, "adjustment",
                    reference_type="product",
                    reference_id=product.id,
                    created_by=product_data.created_by,
                    note=f"Stock set to {target_stock}"
                )
            for field, value in changes.items():
                setattr(product, field, value)
        
        db.refresh(product)
        logger.info(f"Updated product {product.id} ({', '.join(changes) or 'no fields'}; stock delta {delta:+d})")
        
        broadcaster.publish("product:updated", {"id": product.id})
        if new_stock is not None:
            StockService.announce_stock_change(product, new_stock, delta)
        else:
            broadcaster.publish("inventory:updated")
        return product
    
    @staticmethod
    def archive_product(db: Session, product_id: int) -> Product:
        """Soft delete: archived products stay referenced by history"""
        product = ProductService.get_product_by_id(db, product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        
        with atomic(db):
            product.status = "archived"
        
        logger.info(f"Archived product {product_id}")
        broadcaster.publish("product:deleted", {"id": product_id})
        broadcaster.publish("inventory:updated")
        return product
