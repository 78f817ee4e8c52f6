# backend/comandera/services/payment_service.py
"""
Conciliación de pagos: cuánto entregó el cliente y cuánto cambio se le devuelve.

El cambio se calcula pero no se guarda. Con la política "reject" un pago
insuficiente aborta la transacción del pedido; con "advisory" solo se informa
como cambio negativo. Nunca se redondea a cero.
"""

import logging
from decimal import Decimal
from typing import Iterable

from comandera.core.exceptions import InsufficientPaymentError, ValidationFailure

logger = logging.getLogger(__name__)

POLICY_REJECT = "reject"
POLICY_ADVISORY = "advisory"
POLICIES = (POLICY_REJECT, POLICY_ADVISORY)


def total_tendered(amounts: Iterable) -> Decimal:
    return sum((Decimal(amount) for amount in amounts), Decimal("0"))


def reconcile_payments(total_price: Decimal, amounts: Iterable, policy: str = POLICY_REJECT) -> Decimal:
    """
    Devuelve el cambio (entregado - total).

    Raises:
        InsufficientPaymentError: si el cambio es negativo y la política es "reject"
        ValidationFailure: si la política no es válida
    """
    if policy not in POLICIES:
        raise ValidationFailure("INVALID_PAYMENT_POLICY", f"Política de pago desconocida: {policy}")

    tendered = total_tendered(amounts)
    exchange = tendered - Decimal(total_price)
    if exchange < 0:
        if policy == POLICY_REJECT:
            logger.warning(f"Pago insuficiente: entregado {tendered}, total {total_price}")
            raise InsufficientPaymentError(
                detail=f"Pago insuficiente: faltan {-exchange}"
            )
        logger.warning(f"Pago insuficiente aceptado (política advisory): cambio {exchange}")
    return exchange
