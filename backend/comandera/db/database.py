# backend/comandera/db/database.py

"""
Configuración principal de la base de datos para la aplicación.

Este módulo establece la conexión con la base de datos usando SQLAlchemy y define
los componentes básicos que serán utilizados por toda la aplicación:
- Motor de base de datos (engine)
- Fábrica de sesiones (AsyncSessionLocal)
- Clase base para modelos (Base)
- Ámbito transaccional (transaction_scope)

La función get_db() vive en comandera/api/deps.py para mantener las dependencias
de FastAPI separadas de la configuración.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
)
from sqlalchemy.orm import declarative_base

from comandera.core.config import settings # Importamos nuestra configuración


# Opción de ejecución que marca la conexión de una transacción de escritura
WRITE_LOCK_OPTION = "comandera_write_lock"


def _enable_sqlite_serialized_writes(engine: AsyncEngine) -> None:
    """
    Serializa las escrituras de SQLite sin bloquear a los lectores.

    SQLite no tiene bloqueos por fila: las transacciones abiertas con
    transaction_scope empiezan con BEGIN IMMEDIATE, así dos pedidos concurrentes
    no cuentan los mismos pedidos del día antes de insertar. Las sesiones de
    solo lectura usan un BEGIN normal y, con el journal en modo WAL, no frenan
    a quien escribe.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # El driver no debe emitir su propio BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_engine(url: str) -> AsyncEngine:
    """Crea el motor asíncrono y aplica los ajustes propios del dialecto."""
    engine = create_async_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_serialized_writes(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    # expire_on_commit=False es importante para que los objetos sigan siendo utilizables
    # después de que la transacción se haya confirmado.
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Crear el motor de base de datos asíncrono
engine = create_engine(settings.DATABASE_URL)

AsyncSessionLocal = create_session_factory(engine)

# Clase base declarativa para todos los modelos ORM
Base = declarative_base()


@asynccontextmanager
async def transaction_scope(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Abre una transacción sobre la sesión: commit al salir normalmente,
    rollback ante cualquier excepción (incluida la cancelación).

    La conexión se pide marcada como de escritura: en SQLite eso abre la
    transacción con BEGIN IMMEDIATE; en PostgreSQL la opción no tiene efecto.
    """
    async with session.begin():
        await session.connection(execution_options={WRITE_LOCK_OPTION: True})
        yield session
