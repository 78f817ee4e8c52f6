# backend/comandera/crud/menu_crud.py
"""
Consultas de solo lectura sobre platillos y modificadores para el motor de pedidos.

Las búsquedas son por lote (un único SELECT ... IN por tipo de entidad) para no
hacer una consulta por línea del pedido.
"""

from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from comandera.db.models.menu_model import Meal, Modifier


async def get_meals_by_ids(db: AsyncSession, meal_ids: Iterable[int]) -> List[Meal]:
    """Obtiene los platillos cuyos IDs están en el conjunto dado."""
    ids = set(meal_ids)
    if not ids:
        return []
    result = await db.execute(select(Meal).filter(Meal.id.in_(ids)))
    return result.scalars().all()


async def get_modifiers_by_ids(db: AsyncSession, modifier_ids: Iterable[int]) -> List[Modifier]:
    """Obtiene los modificadores cuyos IDs están en el conjunto dado."""
    ids = set(modifier_ids)
    if not ids:
        return []
    result = await db.execute(select(Modifier).filter(Modifier.id.in_(ids)))
    return result.scalars().all()
