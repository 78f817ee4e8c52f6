# backend/comandera/schemas/order_schema.py
"""
Se encarga de definir los esquemas Pydantic para pedidos, items y pagos.
"""

from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import enum

class OrderStatus(str, enum.Enum):
    """Define los posibles estados de un pedido."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"

# ========================================
# ESQUEMAS DE ENTRADA
# ========================================

class OrderItemCreate(BaseModel):
    """Una línea del pedido: platillo, cantidad y modificadores elegidos."""
    meal_id: int = Field(..., description="ID del platillo")
    quantity: int = Field(..., description="Cantidad del platillo", gt=0)
    modifier_ids: List[int] = Field(default_factory=list, description="IDs de los modificadores elegidos")

class PaymentCreate(BaseModel):
    payment_method: PaymentMethod = Field(..., description="Método de pago")
    amount_given: Decimal = Field(..., description="Monto entregado por el cliente", ge=0)

class OrderCreate(BaseModel):
    """Esquema para crear un pedido. El total nunca lo envía el cliente: se calcula."""
    client_name: str = Field(..., description="Nombre del cliente")
    client_phone: str = Field(..., description="Teléfono del cliente")
    status: Optional[OrderStatus] = Field(None, description="Estado inicial del pedido")
    items: List[OrderItemCreate] = Field(default_factory=list, description="Líneas del pedido")
    payments: List[PaymentCreate] = Field(default_factory=list, description="Pagos entregados")

    @validator('client_name', 'client_phone')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('El campo es requerido')
        return v.strip()

class OrderUpdate(BaseModel):
    """
    Esquema para actualizar un pedido. Si llegan `items`, reemplazan por completo
    a los anteriores; si llegan `payments`, también.
    """
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    status: Optional[OrderStatus] = None
    items: Optional[List[OrderItemCreate]] = None
    payments: Optional[List[PaymentCreate]] = None

    def has_changes(self) -> bool:
        return any(
            value is not None
            for value in (self.client_name, self.client_phone, self.status, self.items, self.payments)
        )

# ========================================
# ESQUEMAS DE RESPUESTA
# ========================================

class SubtotalEntry(BaseModel):
    meal_id: int
    subtotal: float

class OrderPlacementResult(BaseModel):
    """Respuesta al registrar un pedido: totales, cambio y subtotales para el ticket."""
    message: str
    order_id: int
    order_number: int
    total_price: float
    exchange: float
    subtotals: List[SubtotalEntry] = []

class OrderItemResponse(BaseModel):
    id: Optional[int] = None
    meal_id: int
    quantity: int
    price: float
    modifier_ids: List[int] = []

class PaymentResponse(BaseModel):
    payment_method: str
    amount_given: float

class OrderResponse(BaseModel):
    """Esquema completo de respuesta para un pedido."""
    id: int
    order_number: int
    status: str
    client_name: str
    client_phone: str
    total_price: float
    created_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    user_id: Optional[int] = None
    items: List[OrderItemResponse] = []
    payments: List[PaymentResponse] = []

class OrderUpdateResult(BaseModel):
    message: str
    exchange: float
    order: OrderResponse

class OrderNumberResponse(BaseModel):
    order_number: Optional[int] = Field(None, description="Número de pedido (None si aún no hay pedidos en la jornada)")
    business_day_start: datetime
    business_day_end: datetime
