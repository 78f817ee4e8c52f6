# backend/comandera/crud/log_crud.py
"""
Operaciones sobre el registro de auditoría. Solo alta y consulta.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from comandera.db.models.log_model import Log
from comandera.db.models.user_model import User
from comandera.schemas.log_schema import ActionType


async def create_log(db: AsyncSession, user: Optional[User], message: str, action_type: ActionType) -> Log:
    """Agrega una entrada al registro. No hace commit: lo decide el llamador."""
    log = Log(
        user_id=user.id if user else None,
        message=message,
        action_type=ActionType(action_type).value,
    )
    db.add(log)
    await db.flush()
    return log


async def get_logs(db: AsyncSession, user_id: Optional[int] = None, skip: int = 0, limit: int = 100) -> List[Log]:
    """Lista las entradas más recientes primero, opcionalmente filtradas por usuario."""
    query = select(Log)
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    query = query.order_by(Log.created_at.desc(), Log.id.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()
