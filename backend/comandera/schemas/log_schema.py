# backend/comandera/schemas/log_schema.py
"""
Esquemas del registro de auditoría.
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
import enum

class ActionType(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

class LogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    message: str
    action_type: ActionType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
