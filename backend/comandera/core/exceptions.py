# backend/comandera/core/exceptions.py
"""
Excepciones de dominio para el motor de pedidos.

Cada excepción lleva un código estable (por ejemplo ``MEAL_NOT_FOUND`` o
``INSUFFICIENT_PAYMENT_ERROR``) que es lo único que ve el cliente de la API,
junto con el código HTTP sugerido. Los detalles internos se quedan en los logs.

Jerarquía:
- OrderError
  - NotFoundError            -> 404
  - ValidationFailure        -> 400
  - InsufficientPaymentError -> 400
  - PersistenceError         -> 500
  - UnknownOrderError        -> 500
"""

from typing import Optional


class OrderError(Exception):
    """Error base del motor de pedidos, con código estable para el cliente."""

    status_code = 500
    default_code = "UNKNOWN_ERROR"

    def __init__(self, code: Optional[str] = None, detail: Optional[str] = None):
        self.code = code or self.default_code
        self.detail = detail
        super().__init__(detail or self.code)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code}


class NotFoundError(OrderError):
    """Un platillo, modificador, pedido o usuario referenciado no existe."""

    status_code = 404
    default_code = "NOT_FOUND"


class ValidationFailure(OrderError):
    """Entrada mal formada (cantidad no positiva, pedido vacío, etc.)."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class InsufficientPaymentError(OrderError):
    status_code = 400
    default_code = "INSUFFICIENT_PAYMENT_ERROR"


class PersistenceError(OrderError):
    """Falló una escritura; la transacción completa se revierte."""

    status_code = 500
    default_code = "PERSISTENCE_ERROR"


class UnknownOrderError(OrderError):
    status_code = 500
    default_code = "UNKNOWN_ERROR"
