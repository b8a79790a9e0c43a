import logging
from decimal import Decimal

import pytest

from marketplace.core.exceptions import ValidationError
from marketplace.models.order import Order, OrderItem, PaymentMethod
from marketplace.schemas.cart import CartItemCreate
from marketplace.schemas.order import OrderHeader
from marketplace.services.checkout import CheckoutService

HEADER = OrderHeader(payment_method=PaymentMethod.card, shipping_address="Asha Tester\n4 Lake View\nKochi, 682001")


@pytest.fixture
def checkout(cart, orders):
    return CheckoutService(cart, orders)


def test_cart_checkout_creates_order_and_empties_cart(db, cart, checkout, make_product, buyer):
    p1 = make_product(title="Bowl", price="50.00")
    p2 = make_product(title="Spoon", price="30.00")
    cart.add_or_merge(buyer.id, CartItemCreate(product_id=p1.id, quantity=2))
    cart.add_or_merge(buyer.id, CartItemCreate(product_id=p2.id, quantity=1))

    order = checkout.checkout(buyer.id, HEADER)

    assert order.total_amount == Decimal("131.30")
    assert order.payment_method == PaymentMethod.card
    assert cart.list_for_user(buyer.id) == []

    items = db.query(OrderItem).filter(OrderItem.order_id == order.id).all()
    assert sorted(item.price for item in items) == [Decimal("30.00"), Decimal("50.00")]


def test_empty_cart_cannot_check_out(db, checkout, buyer):
    with pytest.raises(ValidationError) as excinfo:
        checkout.checkout(buyer.id, HEADER)

    assert excinfo.value.code == "cart_empty"
    assert db.query(Order).count() == 0


def test_cart_clear_failure_keeps_order(db, cart, checkout, make_product, buyer, monkeypatch, caplog):
    product = make_product(price="20.00")
    cart.add_or_merge(buyer.id, CartItemCreate(product_id=product.id, quantity=1))

    def broken_clear(user_id):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(cart, "clear_for_user", broken_clear)

    with caplog.at_level(logging.ERROR, logger="checkout"):
        order = checkout.checkout(buyer.id, HEADER)

    assert db.query(Order).filter(Order.id == order.id).count() == 1
    assert len(cart.list_for_user(buyer.id)) == 1
    assert "was not cleared" in caplog.text
