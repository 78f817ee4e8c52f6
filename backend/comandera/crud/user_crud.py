# backend/comandera/crud/user_crud.py
"""
Búsqueda de usuarios para identificar a quien realiza cada acción.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from comandera.db.models.user_model import User


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """Obtiene un usuario por su email, o None si no existe."""
    if not email:
        return None
    result = await db.execute(select(User).filter(User.email == email))
    return result.scalars().first()
