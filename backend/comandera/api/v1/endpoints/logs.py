# backend/comandera/api/v1/endpoints/logs.py
"""
Consulta del registro de auditoría (solo lectura).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from comandera.api import deps
from comandera.crud import log_crud
from comandera.schemas.log_schema import LogResponse

router = APIRouter()

@router.get("/", response_model=List[LogResponse])
async def list_logs(
    user_id: Optional[int] = Query(None, description="Filtrar por usuario"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db),
):
    """Entradas de auditoría, las más recientes primero."""
    return await log_crud.get_logs(db, user_id=user_id, skip=skip, limit=limit)
