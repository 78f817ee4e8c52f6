# backend/comandera/db/models/log_model.py
"""
Registro de auditoría: solo se inserta, nunca se actualiza ni se borra.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from comandera.db.database import Base


class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    message = Column(Text, nullable=False)
    action_type = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)

    user = relationship("User")

    def __repr__(self):
        return f"<Log(id={self.id}, user_id={self.user_id}, action_type='{self.action_type}')>"
