# backend/comandera/api/v1/endpoints/orders.py
"""
Endpoints REST de pedidos.

Los errores de dominio (OrderError) se traducen a {"success": false, "error": CÓDIGO}
en el manejador registrado en main.py; aquí solo se delega en el servicio.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, status

from comandera.api import deps
from comandera.schemas.order_schema import (
    OrderCreate, OrderNumberResponse, OrderPlacementResult, OrderResponse,
    OrderUpdate, OrderUpdateResult
)
from comandera.services.order_service import OrderService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/next-number", response_model=OrderNumberResponse)
async def get_next_order_number(
    service: OrderService = Depends(deps.get_order_service),
):
    """Número que recibirá el próximo pedido de la jornada."""
    return await service.next_order_number()

@router.get("/last-number", response_model=OrderNumberResponse)
async def get_last_order_number(
    service: OrderService = Depends(deps.get_order_service),
):
    """Último número asignado en la jornada (null si aún no hay pedidos)."""
    return await service.last_order_number()

@router.post("/", response_model=OrderPlacementResult, status_code=status.HTTP_201_CREATED)
async def create_order(
    *,
    order_in: OrderCreate,
    service: OrderService = Depends(deps.get_order_service),
    acting_email: Optional[str] = Depends(deps.get_acting_user_email),
):
    """Registra un pedido y devuelve total, cambio y subtotales por platillo."""
    logger.info(f"🆕 PEDIDO: {len(order_in.items)} líneas para '{order_in.client_name}'")
    return await service.place_order(order_in, acting_email)

@router.get("/", response_model=List[OrderResponse])
async def list_orders(
    service: OrderService = Depends(deps.get_order_service),
):
    return await service.get_orders()

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    service: OrderService = Depends(deps.get_order_service),
):
    return await service.get_order(order_id)

@router.put("/{order_id}", response_model=OrderUpdateResult)
async def update_order(
    *,
    order_id: int,
    update_in: OrderUpdate,
    service: OrderService = Depends(deps.get_order_service),
    acting_email: Optional[str] = Depends(deps.get_acting_user_email),
):
    """Actualiza datos, estado, líneas o pagos de un pedido."""
    return await service.update_order(order_id, update_in, acting_email)

@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    service: OrderService = Depends(deps.get_order_service),
    acting_email: Optional[str] = Depends(deps.get_acting_user_email),
):
    return await service.delete_order(order_id, acting_email)
