# backend/comandera/db/models/user_model.py
"""
Este archivo contiene el modelo de usuario (cajeros y administradores).
"""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from comandera.db.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)  # hash, nunca texto plano
    role = Column(String(20), nullable=False, default="cashier")
    created_at = Column(DateTime, server_default=func.now())

    orders = relationship("Order", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
