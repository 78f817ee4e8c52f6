# backend/comandera/services/order_number_service.py
"""
Numeración de pedidos por jornada.

La jornada del restaurante va de las 03:00 a las 03:00 del día siguiente (hora
local del servidor). El número de un pedido nuevo es la cantidad de pedidos ya
creados en la jornada más uno, así que vuelve a 1 al empezar cada jornada.

Como el número sale de un conteo, borrar un pedido desplaza la numeración de
los siguientes. Contar e insertar debe ocurrir en la misma transacción y con
la jornada bloqueada (ver order_crud.lock_business_day); si no, dos pedidos
simultáneos obtendrían el mismo número.
"""

from datetime import datetime, time, timedelta
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from comandera.core.config import settings
from comandera.crud import order_crud


def business_day_window(now: datetime, start_hour: Optional[int] = None) -> Tuple[datetime, datetime]:
    """
    Calcula la ventana semiabierta [inicio, fin) de la jornada que contiene `now`.

    Example:
        10/05 02:59 -> [09/05 03:00, 10/05 03:00)
        10/05 03:01 -> [10/05 03:00, 11/05 03:00)
    """
    if start_hour is None:
        start_hour = settings.BUSINESS_DAY_START_HOUR
    boundary = time(hour=start_hour)
    start_date = now.date()
    if now.time() < boundary:
        start_date -= timedelta(days=1)
    start = datetime.combine(start_date, boundary)
    return start, start + timedelta(days=1)


async def allocate_order_number(db: AsyncSession, now: datetime) -> int:
    """
    Reserva el siguiente número de pedido de la jornada actual.

    Debe llamarse dentro de la transacción que luego inserta el pedido: el
    bloqueo de la jornada se mantiene hasta el commit o el rollback.
    """
    start, end = business_day_window(now)
    await order_crud.lock_business_day(db, start.date())
    existing = await order_crud.count_orders_in_window(db, start, end)
    return existing + 1


async def peek_next_order_number(db: AsyncSession, now: datetime) -> int:
    """Número que recibiría un pedido creado ahora, sin reservarlo."""
    start, end = business_day_window(now)
    return await order_crud.count_orders_in_window(db, start, end) + 1


async def last_order_number(db: AsyncSession, now: datetime) -> Optional[int]:
    """Último número asignado en la jornada actual, o None si no hay pedidos."""
    start, end = business_day_window(now)
    return await order_crud.get_max_order_number_in_window(db, start, end)
