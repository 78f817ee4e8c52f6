# backend/comandera/api/v1/api_router.py
"""
Este archivo contiene el router principal para la API versión 1.

Se encarga de registrar y configurar todos los routers de la versión 1 de la API.
"""

from fastapi import APIRouter

from comandera.api.v1.endpoints import logs, orders

api_router_v1 = APIRouter()

# ROUTER DE PEDIDOS
# Registro, consulta, modificación y baja de pedidos
api_router_v1.include_router(
    orders.router,
    prefix="/orders",               # Prefijo: /api/v1/orders
    tags=["Orders"]
)

# ROUTER DE AUDITORÍA
api_router_v1.include_router(
    logs.router,
    prefix="/logs",
    tags=["Logs"]
)
