# backend/comandera/services/price_resolver.py
"""
Resolución de precios vigentes para un pedido.

Los precios se leen de la base en cada pedido (nunca de una tabla en memoria)
con una sola consulta por tipo de entidad. Si falta cualquier platillo o
modificador referenciado, el pedido se rechaza.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from comandera.core.exceptions import NotFoundError
from comandera.crud import menu_crud

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class ModifierPrice:
    price: Decimal
    has_price: bool

    @property
    def surcharge(self) -> Decimal:
        """Lo que suma el modificador por unidad de la línea."""
        return self.price if self.has_price else ZERO


@dataclass
class PriceTable:
    meals: Dict[int, Decimal] = field(default_factory=dict)
    modifiers: Dict[int, ModifierPrice] = field(default_factory=dict)

    def meal_price(self, meal_id: int) -> Decimal:
        try:
            return self.meals[meal_id]
        except KeyError:
            raise NotFoundError("MEAL_NOT_FOUND", f"Platillo {meal_id} no encontrado") from None

    def modifier_surcharge(self, modifier_id: int) -> Decimal:
        try:
            return self.modifiers[modifier_id].surcharge
        except KeyError:
            raise NotFoundError("MODIFIER_NOT_FOUND", f"Modificador {modifier_id} no encontrado") from None


async def resolve_prices(
    db: AsyncSession,
    meal_ids: Iterable[int],
    modifier_ids: Iterable[int],
) -> PriceTable:
    """
    Obtiene en lote los precios de los platillos y modificadores indicados.

    Args:
        db: Sesión asíncrona (normalmente la misma transacción del pedido)
        meal_ids: IDs de platillos; se eliminan duplicados
        modifier_ids: IDs de modificadores; se eliminan duplicados

    Returns:
        PriceTable con el precio unitario de cada platillo y el recargo de cada modificador

    Raises:
        NotFoundError: MEAL_NOT_FOUND o MODIFIER_NOT_FOUND con el primer ID faltante
    """
    wanted_meals = set(meal_ids)
    wanted_modifiers = set(modifier_ids)

    meals = await menu_crud.get_meals_by_ids(db, wanted_meals)
    table = PriceTable(meals={meal.id: Decimal(meal.price) for meal in meals})
    missing_meals = wanted_meals - table.meals.keys()
    if missing_meals:
        missing = min(missing_meals)
        logger.warning(f"Pedido rechazado: platillo {missing} no existe")
        raise NotFoundError("MEAL_NOT_FOUND", f"Platillo {missing} no encontrado")

    modifiers = await menu_crud.get_modifiers_by_ids(db, wanted_modifiers)
    table.modifiers = {
        modifier.id: ModifierPrice(
            price=Decimal(modifier.price) if modifier.price is not None else ZERO,
            has_price=bool(modifier.has_price),
        )
        for modifier in modifiers
    }
    missing_modifiers = wanted_modifiers - table.modifiers.keys()
    if missing_modifiers:
        missing = min(missing_modifiers)
        logger.warning(f"Pedido rechazado: modificador {missing} no existe")
        raise NotFoundError("MODIFIER_NOT_FOUND", f"Modificador {missing} no encontrado")

    return table
