"""
Category Service - Category list and get-or-create
"""
import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import atomic
from app.core.errors import ValidationError
from app.models import Category

logger = logging.getLogger(__name__)


class CategoryService:
    """Category business logic"""
    
    @staticmethod
    def get_categories(db: Session) -> List[Category]:
        return db.query(Category).order_by(Category.name).all()
    
    @staticmethod
    def get_or_create(db: Session, name: str) -> Tuple[Category, bool]:
        """Return the category with this name, creating it if needed; the flag is True when created"""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        
        existing = db.query(Category).filter(Category.name == name).first()
        if existing:
            return existing, False
        
        with atomic(db):
            category = Category(name=name)
            try:
                with db.begin_nested():
                    db.add(category)
            except IntegrityError:
                category = None
        
        if category is None:
            # Created concurrently under the same name
            return db.query(Category).filter(Category.name == name).one(), False
        
        logger.info(f"Created category {category.id} ({name})")
        return category, True
