# backend/comandera/db/init_db.py
"""
Registro de modelos e inicialización de tablas.

Importar este módulo garantiza que todos los modelos estén registrados en
Base.metadata antes de configurar los mappers (las relaciones usan nombres
en texto entre módulos).
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from comandera.db.database import Base, engine as default_engine
from comandera.db.models.log_model import Log  # noqa: F401
from comandera.db.models.menu_model import Category, Clave, Meal, Modifier  # noqa: F401
from comandera.db.models.order_model import Order, OrderItem, OrderItemDetail, Payment  # noqa: F401
from comandera.db.models.user_model import User  # noqa: F401

logger = logging.getLogger(__name__)


async def init_db(engine: AsyncEngine = None) -> None:
    """Crea todas las tablas que aún no existan."""
    engine = engine or default_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tablas de la base de datos creadas.")


if __name__ == "__main__":
    asyncio.run(init_db())
