"""
Customer Service - Resolve or create customers from request payloads
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import atomic
from app.core.errors import CustomerNotFound, ValidationError
from app.models import Customer
from app.realtime import broadcaster
from app.schemas.customer import CustomerRef

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> Optional[str]:
    return (email or "").strip().lower() or None


class CustomerService:
    """Customer business logic"""
    
    @staticmethod
    def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()
    
    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == normalize_email(email)).first()
    
    @staticmethod
    def resolve_customer(db: Session, ref: Optional[CustomerRef]) -> Optional[Customer]:
        """
        Find the customer a payload refers to, creating one when needed.
        
        An explicit customer_id must exist. Otherwise the email is the key;
        a payload with no identifying fields is a walk-in (None). Does not
        commit.
        """
        if ref is None:
            return None
        
        if ref.customer_id is not None:
            customer = CustomerService.get_customer(db, ref.customer_id)
            if not customer:
                raise CustomerNotFound(customer_id=ref.customer_id)
            return customer
        
        email = normalize_email(ref.email)
        if email:
            existing = CustomerService.get_by_email(db, email)
            if existing:
                return existing
        
        if not any((email, ref.name, ref.first_name, ref.last_name, ref.phone)):
            return None
        
        name_parts = (ref.name or "").split()
        customer = Customer(
            first_name=ref.first_name or (name_parts[0] if name_parts else "Customer"),
            last_name=ref.last_name or " ".join(name_parts[1:]),
            email=email,
            phone=ref.phone
        )
        
        try:
            with db.begin_nested():
                db.add(customer)
        except IntegrityError:
            # Created concurrently under the same email
            existing = CustomerService.get_by_email(db, email) if email else None
            if existing is None:
                raise
            return existing
        
        logger.info(f"Created customer {customer.id} ({email or 'no email'})")
        return customer
    
    @staticmethod
    def upsert_customer(db: Session, data: CustomerRef) -> Customer:
        """Create a customer, or update name/phone of the one with this email"""
        email = normalize_email(data.email)
        if not email:
            raise ValidationError("Email is required")
        
        with atomic(db):
            customer = CustomerService.get_by_email(db, email)
            if customer is None:
                customer = CustomerService.resolve_customer(db, data.model_copy(update={"customer_id": None}))
            else:
                name_parts = (data.name or "").split()
                first_name = data.first_name or (name_parts[0] if name_parts else None)
                last_name = data.last_name or (" ".join(name_parts[1:]) if name_parts else None)
                if first_name:
                    customer.first_name = first_name
                if last_name is not None:
                    customer.last_name = last_name
                if data.phone:
                    customer.phone = data.phone
            customer_id = customer.id
        
        broadcaster.publish("customer:updated", {"id": customer_id})
        return customer
