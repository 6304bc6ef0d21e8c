"""
Sales Service - Manual (counter) sales orders
"""
import logging
from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from app.core import atomic
from app.core.errors import InsufficientStock, InvalidPrice, ProductNotFound, ValidationError
from app.models import Product, SalesOrder, SalesOrderItem
from app.realtime import broadcaster
from app.schemas.sales import SaleOrderCreate, SaleOrderResult
from .customer_service import CustomerService
from .numbering import as_ref, generate_reference
from .stock_service import StockService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class SalesService:
    """Sales order business logic"""
    
    @staticmethod
    def get_recent_orders(db: Session, limit: int = 50) -> List[SalesOrder]:
        return db.query(SalesOrder).order_by(SalesOrder.ordered_at.desc(), SalesOrder.id.desc()).limit(limit).all()
    
    @staticmethod
    def get_order(db: Session, order_id: int):
        return db.query(SalesOrder).filter(SalesOrder.id == order_id).first()
    
    @staticmethod
    def create_sale_order(db: Session, data: SaleOrderCreate) -> SaleOrderResult:
        """
        Record a paid sale of `quantity` units of one product.
        
        Order, line, stock decrement and one ledger movement for the line are
        committed together; nothing is written if any step fails.
        """
        quantity = data.quantity
        if quantity is None or quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        
        product = db.query(Product).filter(Product.id == data.product_id).first()
        if not product or product.status != "active":
            raise ProductNotFound(product_id=data.product_id)
        
        if product.stock_quantity < quantity:
            raise InsufficientStock(available=product.stock_quantity, requested=quantity, product_id=product.id)
        
        unit_price = data.unit_price if data.unit_price is not None else product.retail_price
        if unit_price is None or Decimal(unit_price) <= 0:
            raise InvalidPrice(unit_price=str(unit_price) if unit_price is not None else None)
        unit_price = Decimal(unit_price).quantize(CENTS)
        
        total_amount = (unit_price * quantity).quantize(CENTS)
        amount_paid = Decimal(data.amount_paid).quantize(CENTS) if data.amount_paid is not None else total_amount
        if amount_paid < total_amount:
            raise ValidationError(
                "Amount paid is less than the order total",
                total_amount=float(total_amount),
                amount_paid=float(amount_paid)
            )
        change_amount = amount_paid - total_amount
        
        with atomic(db):
            customer = CustomerService.resolve_customer(db, data.customer)
            
            order = SalesOrder(
                order_number=generate_reference("SO"),
                customer_id=customer.id if customer else None,
                total_amount=total_amount,
                amount_paid=amount_paid,
                change_amount=change_amount,
                status="Paid",
                payment_status="Paid",
                created_by=as_ref(data.created_by)
            )
            order.items.append(SalesOrderItem(
                product_id=product.id,
                quantity=quantity,
                unit_price=unit_price,
                line_total=total_amount
            ))
            db.add(order)
            db.flush()
            
            new_stock = StockService.decrease_stock(db, product.id, quantity)
            StockService.record_movement(
                db, product.id, -quantity, "sale",
                reference_type="sales_order",
                reference_id=order.id,
                created_by=data.created_by
            )
            
            order_id = order.id
            order_number = order.order_number
        
        logger.info(f"Sales order {order_number}: {quantity} x product {product.id} @ {unit_price} (stock now {new_stock})")
        
        broadcaster.publish("sales:updated")
        StockService.announce_stock_change(product, new_stock, -quantity)
        
        return SaleOrderResult(
            order_id=order_id,
            order_number=order_number,
            total_amount=total_amount,
            amount_paid=amount_paid,
            change_amount=change_amount,
            new_stock=new_stock
        )
