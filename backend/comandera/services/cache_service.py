# backend/comandera/services/cache_service.py
"""
Caché de lectura de pedidos sobre Redis.

La base de datos es la única fuente de verdad; la caché es desechable. Por eso
cualquier fallo de Redis se registra y se ignora: una caché caída nunca debe
impedir registrar un pedido. La invalidación es un DEL explícito tras el commit,
no se confía en que expire el TTL.

Claves:
- orders:all        listado completo de pedidos
- orders:{id}       un pedido concreto
- orders:generation contador que sube con cada invalidación

Una lectura que carga de la base anota la generación antes de consultar y solo
rellena la caché si sigue siendo la misma (WATCH/MULTI). Así una lectura lenta
no puede volver a guardar un pedido que se borró mientras tanto.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from comandera.core.config import Settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> redis.Redis:
    """Crea el cliente asíncrono de Redis a partir de la configuración."""
    return redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        socket_connect_timeout=1,
        socket_timeout=1,
    )


class OrderCacheService:
    """
    Envoltorio tolerante a fallos sobre Redis para el listado y el detalle de pedidos.
    """

    ALL_ORDERS_KEY = "orders:all"
    GENERATION_KEY = "orders:generation"

    def __init__(self, client: redis.Redis, ttl_seconds: int = 3600):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def order_key(order_id: int) -> str:
        return f"orders:{order_id}"

    async def get_json(self, key: str) -> Optional[Any]:
        """Devuelve el valor decodificado, o None si no está o Redis falla."""
        try:
            raw = await self.client.get(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Caché no disponible al leer '{key}': {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Valor corrupto en caché para '{key}', se descarta")
            await self.delete(key)
            return None

    async def set_json(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        try:
            await self.client.set(key, json.dumps(value), ex=ttl_seconds or self.ttl_seconds)
        except (RedisError, OSError) as e:
            logger.warning(f"Caché no disponible al guardar '{key}': {e}")

    async def generation(self) -> Optional[int]:
        """Generación actual de la caché, o None si Redis no responde."""
        try:
            raw = await self.client.get(self.GENERATION_KEY)
        except (RedisError, OSError) as e:
            logger.warning(f"Caché no disponible al leer la generación: {e}")
            return None
        return int(raw) if raw is not None else 0

    async def fill(self, key: str, value: Any, generation: Optional[int]) -> bool:
        """
        Guarda el valor solo si nadie invalidó la caché desde que se leyó
        `generation`. Devuelve True si se guardó.
        """
        if generation is None:
            return False
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                await pipe.watch(self.GENERATION_KEY)
                raw = await pipe.get(self.GENERATION_KEY)
                current = int(raw) if raw is not None else 0
                if current != generation:
                    logger.debug(f"Relleno de '{key}' descartado: generación {generation} -> {current}")
                    return False
                pipe.multi()
                pipe.set(key, json.dumps(value), ex=self.ttl_seconds)
                await pipe.execute()
            return True
        except WatchError:
            logger.debug(f"Relleno de '{key}' descartado: invalidación concurrente")
            return False
        except (RedisError, OSError) as e:
            logger.warning(f"Caché no disponible al guardar '{key}': {e}")
            return False

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.client.delete(*keys)
        except (RedisError, OSError) as e:
            logger.warning(f"Caché no disponible al invalidar {keys}: {e}")

    async def invalidate_order(self, order_id: int) -> None:
        """
        Invalida el pedido y el listado completo, que también lo contiene, y
        sube la generación para descartar los rellenos que ya estén en curso.
        """
        keys = (self.order_key(order_id), self.ALL_ORDERS_KEY)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.incr(self.GENERATION_KEY)
                pipe.delete(*keys)
                await pipe.execute()
        except (RedisError, OSError) as e:
            logger.warning(f"Caché no disponible al invalidar {keys}: {e}")
            return
        logger.debug(f"Caché invalidada para el pedido {order_id}")

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except (RedisError, OSError) as e:
            logger.warning(f"Error al cerrar el cliente de Redis: {e}")
