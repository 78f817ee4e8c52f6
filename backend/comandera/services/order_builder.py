# backend/comandera/services/order_builder.py
"""
Construcción en memoria del agregado de pedido a partir de la solicitud.

Reglas de precio:
- subtotal de la línea = precio del platillo × cantidad
- cada modificador con precio suma su precio × la cantidad de la línea
  (los modificadores no tienen cantidad propia)
- total del pedido = suma de subtotales más los recargos de modificadores
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from comandera.core.exceptions import ValidationFailure
from comandera.db.models.order_model import Order, OrderItem, OrderItemDetail, Payment
from comandera.schemas.order_schema import (
    OrderCreate, OrderItemCreate, OrderStatus, PaymentCreate, SubtotalEntry
)
from comandera.services.price_resolver import PriceTable

logger = logging.getLogger(__name__)

# Las columnas de dinero guardan dos decimales
CENTS = Decimal("0.01")


@dataclass
class PricedLines:
    """Líneas ya valoradas, listas para insertarse bajo un pedido."""
    lines: List[tuple] = field(default_factory=list)  # (OrderItem, [OrderItemDetail])
    subtotals: List[SubtotalEntry] = field(default_factory=list)
    total: Decimal = Decimal("0")


@dataclass
class BuiltOrder:
    order: Order
    lines: List[tuple]
    payments: List[Payment]
    subtotals: List[SubtotalEntry]

    @property
    def total_price(self) -> Decimal:
        return self.order.total_price


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationFailure("INVALID_QUANTITY", f"Cantidad inválida: {quantity!r}")


def price_lines(items: Sequence[OrderItemCreate], prices: PriceTable) -> PricedLines:
    """Valora cada línea con los precios resueltos y acumula el total."""
    priced = PricedLines()
    for item_in in items:
        _check_quantity(item_in.quantity)

        subtotal = prices.meal_price(item_in.meal_id) * item_in.quantity
        surcharge = sum(
            (prices.modifier_surcharge(modifier_id) for modifier_id in item_in.modifier_ids),
            Decimal("0"),
        ) * item_in.quantity
        line_total = subtotal + surcharge

        item = OrderItem(
            meal_id=item_in.meal_id,
            quantity=item_in.quantity,
            price=line_total,
            details=[],
        )
        details = [OrderItemDetail(modifier_id=modifier_id) for modifier_id in item_in.modifier_ids]

        priced.lines.append((item, details))
        priced.subtotals.append(SubtotalEntry(meal_id=item_in.meal_id, subtotal=float(subtotal)))
        priced.total += line_total
    return priced


def build_payments(payments: Sequence[PaymentCreate]) -> List[Payment]:
    return [
        Payment(
            payment_method=getattr(payment.payment_method, "value", payment.payment_method),
            amount_given=Decimal(payment.amount_given).quantize(CENTS, rounding=ROUND_HALF_UP),
        )
        for payment in payments
    ]


def build_order(
    order_in: OrderCreate,
    prices: PriceTable,
    now: datetime,
    order_number: int,
    user_id: Optional[int] = None,
    allow_empty: bool = True,
) -> BuiltOrder:
    """
    Arma el pedido (sin persistir) con sus líneas valoradas y sus pagos.

    Args:
        order_in: Solicitud validada del pedido
        prices: Precios vigentes resueltos para esta solicitud
        now: Hora de creación; debe ser la misma usada para numerar
        order_number: Número asignado dentro de la jornada
        user_id: Usuario que toma el pedido, si se conoce
        allow_empty: Si es False, un pedido sin líneas se rechaza

    Raises:
        ValidationFailure: cantidad no positiva o pedido vacío no permitido
        NotFoundError: si la tabla de precios no tiene algún ID referenciado
    """
    if not order_in.items and not allow_empty:
        raise ValidationFailure("EMPTY_ORDER", "El pedido no tiene líneas")

    priced = price_lines(order_in.items, prices)
    status = order_in.status or OrderStatus.PENDING

    order = Order(
        order_number=order_number,
        status=getattr(status, "value", status),
        client_name=order_in.client_name,
        client_phone=order_in.client_phone,
        total_price=priced.total,
        created_at=now,
        user_id=user_id,
        items=[],
        payments=[],
    )
    if status == OrderStatus.COMPLETED:
        order.delivered_at = now

    logger.debug(f"Pedido #{order_number} armado: {len(priced.lines)} líneas, total {priced.total}")
    return BuiltOrder(
        order=order,
        lines=priced.lines,
        payments=build_payments(order_in.payments),
        subtotals=priced.subtotals,
    )
