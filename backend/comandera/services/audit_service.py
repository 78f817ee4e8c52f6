# backend/comandera/services/audit_service.py
"""
Registro de auditoría de las acciones sobre pedidos.

Cada alta, modificación o baja agrega una entrada al log con el usuario que la
hizo. La escritura va en una tarea aparte con su propia sesión, después del
commit del pedido: no retrasa la respuesta y si falla solo queda en el log de
la aplicación. Un usuario que no se encuentra no es un error; la entrada se
guarda sin usuario y se avisa con un warning.
"""

import asyncio
import logging
from typing import Optional, Set

from sqlalchemy.ext.asyncio import async_sessionmaker

from comandera.crud import log_crud, user_crud
from comandera.db.database import transaction_scope
from comandera.schemas.log_schema import ActionType

logger = logging.getLogger(__name__)


class AuditLogService:

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._pending: Set[asyncio.Task] = set()

    def record(self, acting_email: Optional[str], message: str, action_type: ActionType) -> asyncio.Task:
        """Programa la escritura de la entrada y vuelve de inmediato."""
        task = asyncio.create_task(self._append(acting_email, message, action_type))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Espera a que terminen las escrituras pendientes (apagado y tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _append(self, acting_email: Optional[str], message: str, action_type: ActionType) -> None:
        try:
            async with self.session_factory() as db:
                async with transaction_scope(db):
                    user = await user_crud.get_user_by_email(db, acting_email)
                    if user is None:
                        logger.warning(
                            f"Auditoría: usuario '{acting_email}' no encontrado; se registra sin usuario"
                        )
                    await log_crud.create_log(db, user, message, action_type)
            logger.info(f"Auditoría [{ActionType(action_type).value}] {acting_email}: {message}")
        except Exception as e:
            # Nadie espera esta tarea: el error se queda en el log de la aplicación
            logger.error(f"No se pudo guardar la entrada de auditoría '{message}': {e}", exc_info=True)
