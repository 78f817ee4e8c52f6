# backend/comandera/api/deps.py
"""
Módulo de dependencias para FastAPI.

Este archivo centraliza todas las dependencias que pueden ser inyectadas
en los endpoints de la API: sesión de base de datos, configuración, caché de
pedidos, auditoría y el servicio de pedidos. La caché y la auditoría son
instancias únicas por proceso (la auditoría guarda sus tareas pendientes).
"""

from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from comandera.core.config import Settings, settings
from comandera.db.database import AsyncSessionLocal
from comandera.services.audit_service import AuditLogService
from comandera.services.cache_service import OrderCacheService, create_redis_client
from comandera.services.order_service import OrderService

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependencia de FastAPI para obtener una sesión de base de datos asíncrona.
    Se asegura de que la sesión se cierre siempre después de la petición.
    """
    async with AsyncSessionLocal() as session:
        yield session

def get_settings() -> Settings:
    """
    Dependencia de FastAPI para obtener el objeto de configuración.
    """
    return settings

@lru_cache()
def get_order_cache() -> OrderCacheService:
    return OrderCacheService(create_redis_client(settings), ttl_seconds=settings.ORDERS_CACHE_TTL_SECONDS)

@lru_cache()
def get_audit_service() -> AuditLogService:
    return AuditLogService(AsyncSessionLocal)

def get_order_service(
    cache: OrderCacheService = Depends(get_order_cache),
    audit: AuditLogService = Depends(get_audit_service),
    app_settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(AsyncSessionLocal, cache, audit, settings=app_settings)

def get_acting_user_email(x_user_email: Optional[str] = Header(None)) -> Optional[str]:
    """
    Email del usuario que hace la petición. Lo fija el middleware de
    autenticación, que vive fuera de este servicio.
    """
    return x_user_email
