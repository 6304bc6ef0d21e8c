"""
Manual sales orders
"""
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import InsufficientStock, InvalidPrice, PersistenceError, ProductNotFound, ValidationError
from app.models import Customer, InventoryMovement, SalesOrder
from app.schemas.customer import CustomerRef
from app.schemas.sales import SaleOrderCreate
from app.services import SalesService, StockService
from helpers import assert_ledger_balanced, stock_of


def sell(db, product_id, **kwargs):
    return SalesService.create_sale_order(db, SaleOrderCreate(product_id=product_id, **kwargs))


def test_sale_records_order_line_and_movement(db, product_factory):
    pid = product_factory(stock=5, price="10.00")

    result = sell(db, pid, quantity=3, created_by=2)

    assert result.new_stock == 2
    assert result.total_amount == Decimal("30.00")
    assert result.amount_paid == Decimal("30.00")
    assert result.change_amount == Decimal("0.00")
    assert result.order_number.startswith("SO-")

    order = db.get(SalesOrder, result.order_id)
    assert order.status == "Paid"
    assert order.payment_status == "Paid"
    assert order.created_by == "2"
    assert len(order.items) == 1
    assert order.items[0].quantity == 3
    assert order.items[0].line_total == Decimal("30.00")

    movement = db.query(InventoryMovement).one()
    assert movement.change_qty == -3
    assert movement.reason == "sale"
    assert movement.reference_type == "sales_order"
    assert movement.reference_id == str(order.id)
    assert_ledger_balanced(db, pid)


def test_change_is_computed_from_amount_paid(db, product_factory):
    pid = product_factory(price="12.50")

    result = sell(db, pid, quantity=2, amount_paid=Decimal("30"))

    assert result.total_amount == Decimal("25.00")
    assert result.change_amount == Decimal("5.00")


def test_explicit_unit_price(db, product_factory):
    pid = product_factory(price="40.00")

    result = sell(db, pid, quantity=2, unit_price=Decimal("7.5"))

    assert result.total_amount == Decimal("15.00")
    assert db.get(SalesOrder, result.order_id).items[0].unit_price == Decimal("7.50")


def test_underpayment_is_rejected(db, product_factory):
    pid = product_factory(price="10.00")

    with pytest.raises(ValidationError) as exc:
        sell(db, pid, quantity=2, amount_paid=Decimal("15"))

    assert exc.value.details == {"total_amount": 20.0, "amount_paid": 15.0}
    assert stock_of(db, pid) == 5
    assert db.query(SalesOrder).count() == 0


@pytest.mark.parametrize("price, unit_price", [("0.00", None), ("10.00", Decimal("0")), ("10.00", Decimal("-1"))])
def test_non_positive_price(db, product_factory, price, unit_price):
    pid = product_factory(price=price)

    with pytest.raises(InvalidPrice):
        sell(db, pid, unit_price=unit_price)

    assert db.query(SalesOrder).count() == 0


@pytest.mark.parametrize("quantity", [0, -2])
def test_quantity_must_be_positive(db, product_factory, quantity):
    pid = product_factory()

    with pytest.raises(ValidationError):
        sell(db, pid, quantity=quantity)


def test_cannot_sell_more_than_stock(db, product_factory, events):
    pid = product_factory(stock=2)

    with pytest.raises(InsufficientStock) as exc:
        sell(db, pid, quantity=3)

    assert exc.value.available == 2
    assert exc.value.requested == 3
    assert stock_of(db, pid) == 2
    assert db.query(InventoryMovement).count() == 0
    assert events == []


def test_archived_product(db, product_factory):
    pid = product_factory(status="archived")

    with pytest.raises(ProductNotFound):
        sell(db, pid)


def test_customer_is_created_and_linked(db, product_factory):
    pid = product_factory()

    result = sell(db, pid, customer=CustomerRef(email="hal@example.com", first_name="Hal", phone="555-0101"))

    customer = db.query(Customer).one()
    assert customer.email == "hal@example.com"
    assert customer.phone == "555-0101"
    assert db.get(SalesOrder, result.order_id).customer_id == customer.id


def test_walk_in_sale(db, product_factory):
    pid = product_factory()

    result = sell(db, pid)

    assert db.get(SalesOrder, result.order_id).customer_id is None


def test_ledger_failure_leaves_no_order(db, product_factory, events, monkeypatch):
    pid = product_factory(stock=4)

    def broken_ledger(*args, **kwargs):
        raise OperationalError("INSERT INTO inventory_movement", {}, Exception("database disk image is malformed"))

    monkeypatch.setattr(StockService, "record_movement", staticmethod(broken_ledger))

    with pytest.raises(PersistenceError):
        sell(db, pid, quantity=2, customer=CustomerRef(email="ivy@example.com"))

    assert stock_of(db, pid) == 4
    assert db.query(SalesOrder).count() == 0
    assert db.query(Customer).count() == 0
    assert events == []


def test_events(db, product_factory, events):
    pid = product_factory(stock=30)

    sell(db, pid, quantity=4)

    assert [name for name, _, _ in events] == ["sales:updated", "inventory:updated", "product:stock-changed"]
    assert events[-1][1] == {"id": pid, "newStock": 26}


def test_recent_orders_newest_first(db, product_factory):
    pid = product_factory(stock=5)
    first = sell(db, pid)
    second = sell(db, pid)

    orders = SalesService.get_recent_orders(db)

    assert [o.id for o in orders] == [second.order_id, first.order_id]
