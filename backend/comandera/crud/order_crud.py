# backend/comandera/crud/order_crud.py
"""
Operaciones CRUD para el modelo Order.

Este módulo proporciona las consultas y escrituras del pedido como agregado:
conteo de pedidos de la jornada, inserción atómica de pedido, items, detalles y
pagos, reemplazo de líneas al actualizar y borrado en cascada.

Ninguna función hace commit: todas corren dentro de la transacción que abre el
servicio, y cualquier excepción la revierte completa.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from comandera.core.exceptions import PersistenceError
from comandera.db.models.order_model import Order, OrderItem, OrderItemDetail, Payment

logger = logging.getLogger(__name__)

# Espacio de nombres para pg_advisory_xact_lock(clave1, clave2)
ORDER_NUMBER_LOCK_NAMESPACE = 7301

OrderLine = Tuple[OrderItem, List[OrderItemDetail]]

# ========================================
# NUMERACIÓN POR JORNADA
# ========================================

async def lock_business_day(db: AsyncSession, business_day: date) -> None:
    """
    Serializa la numeración de pedidos de una jornada hasta el fin de la transacción.

    En PostgreSQL toma un advisory lock transaccional; en SQLite la transacción ya
    abre con BEGIN IMMEDIATE (ver db.database), así que no hace falta nada más.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        await db.execute(
            select(func.pg_advisory_xact_lock(ORDER_NUMBER_LOCK_NAMESPACE, business_day.toordinal()))
        )

async def count_orders_in_window(db: AsyncSession, start: datetime, end: datetime) -> int:
    """Cuenta los pedidos creados en la ventana semiabierta [start, end)."""
    query = select(func.count(Order.id)).filter(Order.created_at >= start, Order.created_at < end)
    return await db.scalar(query) or 0

async def get_max_order_number_in_window(db: AsyncSession, start: datetime, end: datetime) -> Optional[int]:
    """Último número asignado en la ventana, o None si aún no hay pedidos."""
    query = select(func.max(Order.order_number)).filter(Order.created_at >= start, Order.created_at < end)
    return await db.scalar(query)

# ========================================
# ESCRITURA DEL AGREGADO
# ========================================

async def _flush(db: AsyncSession, code: str) -> None:
    try:
        await db.flush()
    except SQLAlchemyError as e:
        logger.error(f"Error al persistir el pedido ({code}): {e}", exc_info=True)
        raise PersistenceError(code, str(e)) from e

async def _insert_lines(db: AsyncSession, order: Order, lines: Sequence[OrderLine]) -> None:
    for item, _ in lines:
        order.items.append(item)
    await _flush(db, "ORDER_ITEM_INSERT_ERROR")

    has_details = False
    for item, details in lines:
        for detail in details:
            item.details.append(detail)
            has_details = True
    if has_details:
        await _flush(db, "ORDER_ITEM_DETAILS_INSERT_ERROR")

async def _insert_payments(db: AsyncSession, order: Order, payments: Sequence[Payment]) -> None:
    if not payments:
        return
    for payment in payments:
        order.payments.append(payment)
    await _flush(db, "PAYMENTS_INSERT_ERROR")

async def insert_order_aggregate(
    db: AsyncSession,
    order: Order,
    lines: Sequence[OrderLine],
    payments: Sequence[Payment],
) -> Order:
    """
    Inserta el pedido, luego sus items (ya con el ID del pedido), sus detalles y
    por último los pagos.

    Debe llamarse dentro de una transacción abierta. Cada paso que falla lanza
    PersistenceError con su código (ORDER_INSERT_ERROR, ORDER_ITEM_INSERT_ERROR,
    ORDER_ITEM_DETAILS_INSERT_ERROR, PAYMENTS_INSERT_ERROR) y la transacción
    se revierte entera.

    El pedido debe construirse con `items=[]` y `payments=[]` para que las
    colecciones queden cargadas y no disparen lazy loads tras el flush.
    """
    db.add(order)
    await _flush(db, "ORDER_INSERT_ERROR")
    logger.debug(f"Pedido insertado con ID {order.id} (número {order.order_number})")

    await _insert_lines(db, order, lines)
    await _insert_payments(db, order, payments)
    return order

async def replace_order_items(db: AsyncSession, order: Order, lines: Sequence[OrderLine]) -> None:
    """Borra las líneas actuales del pedido (con sus detalles) e inserta las nuevas."""
    order.items.clear()
    await _flush(db, "ORDER_ITEM_DELETE_ERROR")
    await _insert_lines(db, order, lines)

async def replace_payments(db: AsyncSession, order: Order, payments: Sequence[Payment]) -> None:
    order.payments.clear()
    await _flush(db, "PAYMENTS_DELETE_ERROR")
    await _insert_payments(db, order, payments)

async def update_order_fields(db: AsyncSession, order: Order, **fields) -> Order:
    for name, value in fields.items():
        setattr(order, name, value)
    await _flush(db, "ORDER_UPDATE_ERROR")
    return order

async def delete_order(db: AsyncSession, order: Order) -> None:
    """Borra el pedido; items, detalles y pagos se van en cascada."""
    await db.delete(order)
    await _flush(db, "DELETE_ERROR")

# ========================================
# LECTURA
# ========================================

def _with_aggregate(query):
    return query.options(
        selectinload(Order.items).selectinload(OrderItem.details),
        selectinload(Order.payments),
    )

async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
    """Obtiene un pedido con items, detalles y pagos ya cargados."""
    result = await db.execute(_with_aggregate(select(Order).filter(Order.id == order_id)))
    return result.scalars().first()

async def get_orders(db: AsyncSession, skip: int = 0, limit: Optional[int] = None) -> List[Order]:
    """Lista los pedidos, del más reciente al más antiguo."""
    query = _with_aggregate(select(Order)).order_by(Order.created_at.desc(), Order.id.desc()).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return result.scalars().all()
