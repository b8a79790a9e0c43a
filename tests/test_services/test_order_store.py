from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from marketplace.core.clock import FixedClock
from marketplace.core.exceptions import InvalidStatusTransition, NotFoundError, StorageError, ValidationError
from marketplace.crud import order as crud_order
from marketplace.models.order import DeliveryStatus, Order, OrderItem, PaymentMethod
from marketplace.schemas.order import OrderHeader, OrderLineIn
from marketplace.schemas.product import ProductUpdate
from marketplace.services.order_store import OrderStore

HEADER = OrderHeader(payment_method=PaymentMethod.upi, shipping_address="Asha Tester\n12 MG Road\nPune, 411001")


class StubRandom:
    def __init__(self, value):
        self.value = value
        self.calls = []

    def randint(self, low, high):
        self.calls.append((low, high))
        return self.value


def test_checkout_writes_order_and_snapshot_lines(db, orders, clock, make_product, buyer):
    p1 = make_product(title="Mug", price="50.00")
    p2 = make_product(title="Plate", price="30.00")

    order = orders.checkout(
        buyer.id,
        HEADER,
        [OrderLineIn(product_id=p1.id, quantity=2), OrderLineIn(product_id=p2.id, quantity=1)],
    )

    assert order.user_id == buyer.id
    assert order.total_amount == Decimal("131.30")
    assert order.payment_method == PaymentMethod.upi
    assert order.delivery_status == DeliveryStatus.ordered
    assert order.shipping_address == HEADER.shipping_address
    assert order.created_at == clock.now()

    items = db.query(OrderItem).filter(OrderItem.order_id == order.id).all()
    assert sorted((i.product_id, i.quantity, i.price) for i in items) == sorted(
        [(p1.id, 2, Decimal("50.00")), (p2.id, 1, Decimal("30.00"))]
    )


def test_repeated_product_keeps_one_row_per_line(db, orders, make_product, buyer):
    product = make_product(price="10.00")

    order = orders.checkout(
        buyer.id,
        HEADER,
        [OrderLineIn(product_id=product.id, quantity=1), OrderLineIn(product_id=product.id, quantity=2)],
    )

    items = db.query(OrderItem).filter(OrderItem.order_id == order.id).all()
    assert sorted(item.quantity for item in items) == [1, 2]
    assert {item.product_id for item in items} == {product.id}
    assert all(item.price == Decimal("10.00") for item in items)
    assert order.total_amount == Decimal("30.30")


def test_delivery_date_uses_injected_clock_and_random(db, clock, make_product, buyer):
    rng = StubRandom(5)
    store = OrderStore(db, clock=clock, rng=rng)
    product = make_product()

    order = store.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=1)])

    assert rng.calls == [(3, 7)]
    assert order.delivery_date == clock.now() + timedelta(days=5)


def test_delivery_date_within_window(orders, clock, make_product, buyer):
    product = make_product()
    for _ in range(10):
        order = orders.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=1)])
        offset = order.delivery_date - clock.now()
        assert timedelta(days=3) <= offset <= timedelta(days=7)
        assert offset.seconds == 0


def test_invalid_delivery_window_rejected(db):
    with pytest.raises(ValueError):
        OrderStore(db, delivery_min_days=5, delivery_max_days=2)


def test_checkout_failure_leaves_no_rows(db, orders, make_product, buyer, monkeypatch):
    p1 = make_product(title="First")
    p2 = make_product(title="Second")
    real_insert_items = crud_order.insert_order_items

    def insert_then_fail(session, order_id, lines):
        real_insert_items(session, order_id, list(lines)[:1])
        raise OperationalError("INSERT INTO order_items", {}, Exception("disk I/O error"))

    monkeypatch.setattr(crud_order, "insert_order_items", insert_then_fail)

    with pytest.raises(StorageError):
        orders.checkout(
            buyer.id,
            HEADER,
            [OrderLineIn(product_id=p1.id, quantity=1), OrderLineIn(product_id=p2.id, quantity=1)],
        )

    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0


def test_checkout_rejects_unavailable_products(db, orders, catalog, make_product, buyer, seller):
    live = make_product(title="Live")
    retired = make_product(title="Retired")
    catalog.soft_delete(seller.id, retired.id)

    with pytest.raises(ValidationError):
        orders.checkout(
            buyer.id,
            HEADER,
            [OrderLineIn(product_id=live.id, quantity=1), OrderLineIn(product_id=retired.id, quantity=1)],
        )
    with pytest.raises(ValidationError):
        orders.checkout(buyer.id, HEADER, [OrderLineIn(product_id="ghost", quantity=1)])
    with pytest.raises(ValidationError):
        orders.checkout(buyer.id, HEADER, [])

    assert db.query(Order).count() == 0


def test_snapshot_price_survives_catalog_changes(orders, catalog, make_product, buyer, seller):
    product = make_product(title="Clock", price="40.00")
    order = orders.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=2)])

    catalog.update(seller.id, product.id, ProductUpdate(price=Decimal("99.00")))
    catalog.soft_delete(seller.id, product.id)

    [history] = orders.get_orders_for_user(buyer.id)
    assert history.id == order.id
    assert history.total_amount == Decimal("80.80")
    [line] = history.order_items
    assert line.price == Decimal("40.00")
    assert line.quantity == 2
    assert line.product.title == "Clock"
    assert line.product.is_active is False


def test_orders_listed_newest_first_and_scoped_to_user(db, clock, make_product, buyer, other_seller, rng):
    product = make_product()
    early = OrderStore(db, clock=FixedClock(clock.now()), rng=rng)
    late = OrderStore(db, clock=FixedClock(clock.now() + timedelta(hours=1)), rng=rng)
    first = early.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=1)])
    second = late.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=2)])
    late.checkout(other_seller.id, HEADER, [OrderLineIn(product_id=product.id, quantity=1)])

    history = early.get_orders_for_user(buyer.id)
    assert [o.id for o in history] == [second.id, first.id]
    assert [len(o.order_items) for o in history] == [1, 1]


def test_get_order_is_owner_scoped(orders, make_product, buyer, other_seller):
    product = make_product()
    order = orders.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=1)])

    assert orders.get_order(buyer.id, order.id).id == order.id
    with pytest.raises(NotFoundError):
        orders.get_order(other_seller.id, order.id)


def test_status_moves_forward_to_delivered_and_stays(orders, make_product, buyer):
    product = make_product()
    order = orders.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=1)])

    for status in (DeliveryStatus.shipped, DeliveryStatus.out_for_delivery, DeliveryStatus.delivered):
        assert orders.update_status(order.id, status).delivery_status == status

    assert orders.update_status(order.id, DeliveryStatus.delivered).delivery_status == DeliveryStatus.delivered
    [stored] = orders.get_orders_for_user(buyer.id)
    assert stored.delivery_status == DeliveryStatus.delivered


def test_status_can_skip_forward_but_not_go_back(orders, make_product, buyer):
    product = make_product()
    order = orders.checkout(buyer.id, HEADER, [OrderLineIn(product_id=product.id, quantity=1)])

    orders.update_status(order.id, DeliveryStatus.out_for_delivery)
    with pytest.raises(InvalidStatusTransition):
        orders.update_status(order.id, DeliveryStatus.shipped)

    assert orders.get_order(buyer.id, order.id).delivery_status == DeliveryStatus.out_for_delivery


def test_status_update_errors(orders):
    with pytest.raises(NotFoundError):
        orders.update_status("missing-order", DeliveryStatus.shipped)
    with pytest.raises(ValidationError):
        orders.update_status("missing-order", "lost_at_sea")
