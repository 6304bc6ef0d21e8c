"""
Assertion helpers shared by the test modules
"""
from sqlalchemy import func

from app.models import InventoryMovement, Product


def stock_of(session, product_id):
    return session.query(Product.stock_quantity).filter(Product.id == product_id).scalar()


def ledger_total(session, product_id):
    return session.query(func.coalesce(func.sum(InventoryMovement.change_qty), 0)).filter(
        InventoryMovement.product_id == product_id
    ).scalar()


def assert_ledger_balanced(session, product_id):
    product = session.query(Product).populate_existing().filter(Product.id == product_id).one()
    assert product.stock_quantity == product.initial_stock + ledger_total(session, product_id)
