# backend/comandera/db/models/menu_model.py
"""
Modelos del menú: categorías, platillos, modificadores y claves de cocina.

El motor de pedidos solo lee de estas tablas (precios y existencia); su CRUD
completo vive fuera de este paquete.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Table, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from comandera.db.database import Base

# Un modificador puede aplicarse a platillos de varias categorías
modifier_categories = Table(
    "modifier_categories",
    Base.metadata,
    Column("modifier_id", Integer, ForeignKey("modifiers.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime, server_default=func.now())

    meals = relationship("Meal", back_populates="category")
    modifiers = relationship("Modifier", secondary=modifier_categories, back_populates="categories")


class Clave(Base):
    """
    Código corto que usa el sistema externo de comandas de cocina.
    Para el motor de pedidos es opaco: solo se guarda y se concatena.
    """
    __tablename__ = "claves"

    id = Column(Integer, primary_key=True, index=True)
    word = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False)
    kind = Column(String(20), nullable=False)  # 'meal' o 'modifier'
    created_at = Column(DateTime, server_default=func.now())


class Meal(Base):
    __tablename__ = "meals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    is_clave_applied = Column(Boolean, nullable=False, default=False)
    clave_id = Column(Integer, ForeignKey("claves.id", ondelete="SET NULL"), nullable=True)
    image_id = Column(String(255), nullable=True)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    category = relationship("Category", back_populates="meals")
    clave = relationship("Clave")

    def __repr__(self):
        return f"<Meal(id={self.id}, name='{self.name}', price={self.price})>"


class Modifier(Base):
    __tablename__ = "modifiers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    has_price = Column(Boolean, nullable=False, default=False)
    price = Column(Numeric(10, 2), nullable=True)
    clave_id = Column(Integer, ForeignKey("claves.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    categories = relationship("Category", secondary=modifier_categories, back_populates="modifiers")
    clave = relationship("Clave")

    def __repr__(self):
        return f"<Modifier(id={self.id}, name='{self.name}', has_price={self.has_price})>"
