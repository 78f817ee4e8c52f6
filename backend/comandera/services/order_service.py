# backend/comandera/services/order_service.py
"""
Servicio de pedidos: orquesta el registro, consulta, modificación y baja de pedidos.

Orden estricto dentro de un registro:
    precios -> número de jornada -> armado -> persistencia -> conciliación de pagos
    -> (commit) -> invalidación de caché -> auditoría

Todo lo que va antes del commit ocurre en una única transacción; cualquier
error la revierte completa. La caché y la auditoría solo se tocan después del
commit y sus fallos nunca llegan al cliente.

Cada operación de escritura corre protegida con asyncio.shield: si el cliente
se desconecta a mitad de la petición, la transacción termina igual (commit o
rollback) en el servidor.
"""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from comandera.core.config import Settings, settings as default_settings
from comandera.core.exceptions import NotFoundError, PersistenceError, ValidationFailure
from comandera.crud import order_crud, user_crud
from comandera.db.database import transaction_scope
from comandera.db.models.user_model import User
from comandera.schemas.log_schema import ActionType
from comandera.schemas.order_schema import (
    OrderCreate, OrderNumberResponse, OrderPlacementResult, OrderResponse,
    OrderStatus, OrderUpdate, OrderUpdateResult
)
from comandera.services import order_number_service
from comandera.services.audit_service import AuditLogService
from comandera.services.cache_service import OrderCacheService
from comandera.services.order_builder import build_order, build_payments, price_lines
from comandera.services.payment_service import POLICY_ADVISORY, reconcile_payments
from comandera.services.price_resolver import resolve_prices

logger = logging.getLogger(__name__)


class OrderService:
    """
    Servicio de negocio para pedidos.

    Args:
        session_factory: Fábrica de sesiones asíncronas (una sesión por operación)
        cache: Caché de lectura de pedidos
        audit: Registro de auditoría
        settings: Políticas configurables (pago insuficiente, usuario obligatorio, ...)
        clock: Reloj local del servidor; inyectable para tests
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        cache: OrderCacheService,
        audit: AuditLogService,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_factory = session_factory
        self.cache = cache
        self.audit = audit
        self.settings = settings
        self.clock = clock

    # ========================================
    # OPERACIONES DE ESCRITURA
    # ========================================

    async def place_order(self, order_in: OrderCreate, acting_email: Optional[str] = None) -> OrderPlacementResult:
        """
        Registra un pedido completo y devuelve totales, cambio y subtotales.

        Raises:
            NotFoundError: MEAL_NOT_FOUND, MODIFIER_NOT_FOUND o USER_NOT_FOUND (modo estricto)
            ValidationFailure: cantidad no positiva o pedido vacío no permitido
            InsufficientPaymentError: con la política "reject"
            PersistenceError: cualquier fallo de escritura (sin commit parcial)
        """
        return await asyncio.shield(self._place_order(order_in, acting_email))

    async def _place_order(self, order_in: OrderCreate, acting_email: Optional[str]) -> OrderPlacementResult:
        now = self.clock()
        meal_ids = {item.meal_id for item in order_in.items}
        modifier_ids = {modifier_id for item in order_in.items for modifier_id in item.modifier_ids}

        try:
            async with self.session_factory() as db:
                async with transaction_scope(db):
                    user = await self._resolve_acting_user(db, acting_email)
                    prices = await resolve_prices(db, meal_ids, modifier_ids)
                    order_number = await order_number_service.allocate_order_number(db, now)
                    built = build_order(
                        order_in,
                        prices,
                        now=now,
                        order_number=order_number,
                        user_id=user.id if user else None,
                        allow_empty=self.settings.ALLOW_EMPTY_ORDERS,
                    )
                    order = await order_crud.insert_order_aggregate(db, built.order, built.lines, built.payments)
                    exchange = reconcile_payments(
                        order.total_price,
                        [payment.amount_given for payment in built.payments],
                        self.settings.INSUFFICIENT_PAYMENT_POLICY,
                    )
        except SQLAlchemyError as e:
            logger.error(f"Error de base de datos al registrar el pedido: {e}", exc_info=True)
            raise PersistenceError("ORDER_INSERT_ERROR", str(e)) from e

        logger.info(f"✅ PEDIDO: #{order.order_number} registrado (ID {order.id}), total {order.total_price}")

        await self.cache.invalidate_order(order.id)
        self.audit.record(
            acting_email,
            f"Pedido #{order.order_number} (ID {order.id}) creado para {order.client_name}, total {order.total_price}",
            ActionType.CREATE,
        )

        return OrderPlacementResult(
            message="Order saved successfully",
            order_id=order.id,
            order_number=order.order_number,
            total_price=float(order.total_price),
            exchange=float(exchange),
            subtotals=built.subtotals,
        )

    async def update_order(
        self, order_id: int, update_in: OrderUpdate, acting_email: Optional[str] = None
    ) -> OrderUpdateResult:
        """
        Modifica un pedido. Las líneas nuevas reemplazan a las anteriores y el
        total se vuelve a calcular con los precios vigentes.
        """
        if not update_in.has_changes():
            raise ValidationFailure("NO_FIELDS_TO_UPDATE", "No se envió ningún campo para actualizar")
        return await asyncio.shield(self._update_order(order_id, update_in, acting_email))

    async def _update_order(self, order_id: int, update_in: OrderUpdate, acting_email: Optional[str]) -> OrderUpdateResult:
        now = self.clock()
        try:
            async with self.session_factory() as db:
                async with transaction_scope(db):
                    await self._resolve_acting_user(db, acting_email)
                    order = await order_crud.get_order(db, order_id)
                    if order is None:
                        raise NotFoundError("ORDER_NOT_FOUND", f"Pedido {order_id} no encontrado")

                    fields = {}
                    if update_in.client_name is not None:
                        fields["client_name"] = update_in.client_name
                    if update_in.client_phone is not None:
                        fields["client_phone"] = update_in.client_phone
                    if update_in.status is not None:
                        fields["status"] = update_in.status.value
                        if update_in.status == OrderStatus.COMPLETED and order.status != OrderStatus.COMPLETED.value:
                            fields["delivered_at"] = now

                    if update_in.items is not None:
                        if not update_in.items and not self.settings.ALLOW_EMPTY_ORDERS:
                            raise ValidationFailure("EMPTY_ORDER", "El pedido no tiene líneas")
                        meal_ids = {item.meal_id for item in update_in.items}
                        modifier_ids = {m for item in update_in.items for m in item.modifier_ids}
                        prices = await resolve_prices(db, meal_ids, modifier_ids)
                        priced = price_lines(update_in.items, prices)
                        await order_crud.replace_order_items(db, order, priced.lines)

                    if update_in.payments is not None:
                        await order_crud.replace_payments(db, order, build_payments(update_in.payments))

                    fields["total_price"] = sum((Decimal(item.price) for item in order.items), Decimal("0"))
                    await order_crud.update_order_fields(db, order, **fields)

                    # Solo se exige cubrir el total si cambiaron líneas o pagos
                    money_changed = update_in.items is not None or update_in.payments is not None
                    exchange = reconcile_payments(
                        order.total_price,
                        [payment.amount_given for payment in order.payments],
                        self.settings.INSUFFICIENT_PAYMENT_POLICY if money_changed else POLICY_ADVISORY,
                    )
                    order_data = order.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"Error de base de datos al actualizar el pedido {order_id}: {e}", exc_info=True)
            raise PersistenceError("FAILED_TO_UPDATE_ORDER", str(e)) from e

        logger.info(f"🔄 PEDIDO: ID {order_id} actualizado, total {order_data['total_price']}")

        await self.cache.invalidate_order(order_id)
        self.audit.record(
            acting_email,
            f"Pedido #{order_data['order_number']} (ID {order_id}) actualizado: {', '.join(sorted(fields))}",
            ActionType.UPDATE,
        )
        return OrderUpdateResult(
            message="Order updated successfully",
            exchange=float(exchange),
            order=OrderResponse(**order_data),
        )

    async def delete_order(self, order_id: int, acting_email: Optional[str] = None) -> dict:
        """Borra el pedido con sus items, detalles y pagos."""
        return await asyncio.shield(self._delete_order(order_id, acting_email))

    async def _delete_order(self, order_id: int, acting_email: Optional[str]) -> dict:
        try:
            async with self.session_factory() as db:
                async with transaction_scope(db):
                    await self._resolve_acting_user(db, acting_email)
                    order = await order_crud.get_order(db, order_id)
                    if order is None:
                        raise NotFoundError("ORDER_NOT_FOUND", f"Pedido {order_id} no encontrado")
                    order_number = order.order_number
                    await order_crud.delete_order(db, order)
        except SQLAlchemyError as e:
            logger.error(f"Error de base de datos al borrar el pedido {order_id}: {e}", exc_info=True)
            raise PersistenceError("DELETE_ERROR", str(e)) from e

        logger.info(f"🗑️ PEDIDO: ID {order_id} borrado")

        await self.cache.invalidate_order(order_id)
        self.audit.record(
            acting_email,
            f"Pedido #{order_number} (ID {order_id}) borrado",
            ActionType.DELETE,
        )
        return {"success": True, "message": "Order deleted successfully"}

    # ========================================
    # OPERACIONES DE CONSULTA (lectura a través de la caché)
    # ========================================

    async def get_orders(self) -> List[dict]:
        """Listado completo de pedidos; se sirve de la caché si está."""
        cached = await self.cache.get_json(OrderCacheService.ALL_ORDERS_KEY)
        if cached is not None:
            return cached

        # Se anota antes de leer: si algo invalida mientras tanto, no se rellena
        generation = await self.cache.generation()
        async with self.session_factory() as db:
            orders = await order_crud.get_orders(db)
            data = [order.to_dict() for order in orders]

        await self.cache.fill(OrderCacheService.ALL_ORDERS_KEY, data, generation)
        return data

    async def get_order(self, order_id: int) -> dict:
        """
        Un pedido por su ID; se sirve de la caché si está.

        Raises:
            NotFoundError: ORDER_NOT_FOUND
        """
        key = OrderCacheService.order_key(order_id)
        cached = await self.cache.get_json(key)
        if cached is not None:
            return cached

        generation = await self.cache.generation()
        async with self.session_factory() as db:
            order = await order_crud.get_order(db, order_id)
            if order is None:
                raise NotFoundError("ORDER_NOT_FOUND", f"Pedido {order_id} no encontrado")
            data = order.to_dict()

        await self.cache.fill(key, data, generation)
        return data

    async def next_order_number(self) -> OrderNumberResponse:
        """Número que recibiría un pedido registrado ahora (sin reservarlo)."""
        now = self.clock()
        start, end = order_number_service.business_day_window(now)
        async with self.session_factory() as db:
            number = await order_number_service.peek_next_order_number(db, now)
        return OrderNumberResponse(order_number=number, business_day_start=start, business_day_end=end)

    async def last_order_number(self) -> OrderNumberResponse:
        now = self.clock()
        start, end = order_number_service.business_day_window(now)
        async with self.session_factory() as db:
            number = await order_number_service.last_order_number(db, now)
        return OrderNumberResponse(order_number=number, business_day_start=start, business_day_end=end)

    # ========================================
    # AUXILIARES
    # ========================================

    async def _resolve_acting_user(self, db: AsyncSession, acting_email: Optional[str]) -> Optional[User]:
        """
        Busca al usuario que realiza la acción. Solo es obligatorio si
        AUDIT_REQUIRE_ACTING_USER está activo; en ese caso su ausencia revierte todo.
        """
        user = await user_crud.get_user_by_email(db, acting_email)
        if user is None and self.settings.AUDIT_REQUIRE_ACTING_USER:
            logger.warning(f"Operación rechazada: usuario '{acting_email}' no encontrado")
            raise NotFoundError("USER_NOT_FOUND", f"Usuario {acting_email} no encontrado")
        return user
