from datetime import datetime
from decimal import Decimal

import pytest

from comandera.core.exceptions import NotFoundError, ValidationFailure
from comandera.schemas.order_schema import OrderCreate, OrderItemCreate, OrderStatus, PaymentCreate
from comandera.services.order_builder import build_order, build_payments, price_lines
from comandera.services.price_resolver import ModifierPrice, PriceTable

from conftest import make_order

NOW = datetime(2024, 5, 10, 12, 0)


@pytest.fixture
def prices():
    return PriceTable(
        meals={1: Decimal("50"), 2: Decimal("30")},
        modifiers={
            9: ModifierPrice(price=Decimal("10"), has_price=True),
            10: ModifierPrice(price=Decimal("7"), has_price=False),
        },
    )


def test_priced_modifier_inherits_line_quantity(prices):
    built = build_order(make_order(), prices, now=NOW, order_number=1)

    assert built.total_price == Decimal("120")
    assert [entry.model_dump() for entry in built.subtotals] == [{"meal_id": 1, "subtotal": 100.0}]
    item, details = built.lines[0]
    assert item.price == Decimal("120")
    assert item.quantity == 2
    assert [detail.modifier_id for detail in details] == [9]


def test_unpriced_modifier_adds_nothing(prices):
    order_in = make_order(items=[{"meal_id": 2, "quantity": 3, "modifier_ids": [10]}])

    built = build_order(order_in, prices, now=NOW, order_number=1)

    assert built.total_price == Decimal("90")


def test_subtotals_do_not_depend_on_line_order(prices):
    items = [
        OrderItemCreate(meal_id=1, quantity=2),
        OrderItemCreate(meal_id=2, quantity=4, modifier_ids=[9]),
    ]

    forward = price_lines(items, prices)
    backward = price_lines(list(reversed(items)), prices)

    assert forward.total == backward.total == Decimal("260")
    assert {e.meal_id: e.subtotal for e in forward.subtotals} == {e.meal_id: e.subtotal for e in backward.subtotals}


def test_order_defaults_and_metadata(prices):
    built = build_order(make_order(), prices, now=NOW, order_number=7, user_id=3)

    order = built.order
    assert order.order_number == 7
    assert order.status == OrderStatus.PENDING.value
    assert order.created_at == NOW
    assert order.delivered_at is None
    assert order.user_id == 3
    assert [p.amount_given for p in built.payments] == [Decimal("130")]
    assert [p.payment_method for p in built.payments] == ["cash"]


def test_completed_order_is_stamped_as_delivered(prices):
    built = build_order(make_order(status="completed"), prices, now=NOW, order_number=1)

    assert built.order.delivered_at == NOW


@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity_is_rejected(prices, quantity):
    item = OrderItemCreate.model_construct(meal_id=1, quantity=quantity, modifier_ids=[])
    order_in = OrderCreate.model_construct(
        client_name="Ana", client_phone="1", status=None, items=[item], payments=[]
    )

    with pytest.raises(ValidationFailure) as exc_info:
        build_order(order_in, prices, now=NOW, order_number=1)
    assert exc_info.value.code == "INVALID_QUANTITY"


def test_unknown_meal_fails_closed(prices):
    order_in = make_order(items=[{"meal_id": 99, "quantity": 1}])

    with pytest.raises(NotFoundError) as exc_info:
        build_order(order_in, prices, now=NOW, order_number=1)
    assert exc_info.value.code == "MEAL_NOT_FOUND"


def test_empty_order_allowed_unless_disabled(prices):
    order_in = make_order(items=[], payments=[])

    built = build_order(order_in, prices, now=NOW, order_number=1)
    assert built.total_price == Decimal("0")
    assert built.lines == []

    with pytest.raises(ValidationFailure) as exc_info:
        build_order(order_in, prices, now=NOW, order_number=1, allow_empty=False)
    assert exc_info.value.code == "EMPTY_ORDER"


def test_payments_are_rounded_to_cents():
    payments = build_payments([
        PaymentCreate(payment_method="cash", amount_given=Decimal("120.004")),
        PaymentCreate(payment_method="card", amount_given=Decimal("0.005")),
    ])

    assert [p.amount_given for p in payments] == [Decimal("120.00"), Decimal("0.01")]
    assert [p.payment_method for p in payments] == ["cash", "card"]
