# backend/comandera/db/models/order_model.py
"""
Este archivo contiene los modelos del pedido: Order, OrderItem, OrderItemDetail y Payment.

El pedido es dueño exclusivo de sus items, detalles y pagos: al borrarlo se
borran en cascada. Meal y Modifier solo se referencian.
"""

from datetime import datetime

from sqlalchemy import (
    Column, DateTime, ForeignKey, Index, Integer, Numeric, String
)
from sqlalchemy.orm import relationship

from comandera.db.database import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    # Único solo dentro de su jornada (ver order_number_service)
    order_number = Column(Integer, nullable=False)
    status = Column(String(50), nullable=False, default="pending")
    client_name = Column(String(255), nullable=False)
    client_phone = Column(String(50), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    # Hora local del servidor, la misma que usa la ventana de la jornada
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    delivered_at = Column(DateTime, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="order", cascade="all, delete-orphan")
    user = relationship("User", back_populates="orders")

    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, number={self.order_number}, status='{self.status}')>"

    def to_dict(self):
        """Convierte el pedido con sus items, detalles y pagos a un diccionario serializable."""
        return {
            "id": self.id,
            "order_number": self.order_number,
            "status": self.status,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "total_price": float(self.total_price),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "delivered_at": self.delivered_at.isoformat() if self.delivered_at else None,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "payments": [
                {
                    "payment_method": payment.payment_method,
                    "amount_given": float(payment.amount_given),
                } for payment in self.payments
            ],
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    meal_id = Column(Integer, ForeignKey("meals.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Aporte de la línea al total: precio del platillo y modificadores con precio, por cantidad
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    meal = relationship("Meal")
    details = relationship("OrderItemDetail", back_populates="order_item", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, meal_id={self.meal_id})>"

    def to_dict(self):
        return {
            "id": self.id,
            "meal_id": self.meal_id,
            "quantity": self.quantity,
            "price": float(self.price),
            "modifier_ids": [detail.modifier_id for detail in self.details],
        }


class OrderItemDetail(Base):
    """Modificador elegido para una línea. No tiene precio propio."""
    __tablename__ = "order_item_details"

    id = Column(Integer, primary_key=True, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    modifier_id = Column(Integer, ForeignKey("modifiers.id", ondelete="RESTRICT"), nullable=False)

    order_item = relationship("OrderItem", back_populates="details")
    modifier = relationship("Modifier")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_method = Column(String(20), nullable=False)
    amount_given = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    order = relationship("Order", back_populates="payments")
