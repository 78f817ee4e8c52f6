# backend/comandera/main.py
"""
Punto de entrada principal de la aplicación FastAPI.

Este módulo configura y inicializa la aplicación: logging, rutas de la API,
manejadores de errores y eventos del ciclo de vida (startup/shutdown).

Los errores de dominio se devuelven siempre como {"success": false, "error": CÓDIGO};
los inesperados se registran completos en el log y al cliente solo le llega
UNKNOWN_ERROR, nunca un traceback.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from comandera.api import deps
from comandera.api.v1.api_router import api_router_v1
from comandera.core.config import settings
from comandera.core.exceptions import OrderError, UnknownOrderError
from comandera.core.logging_config import setup_logging
from comandera.db import init_db as db_init

setup_logging()
logger = logging.getLogger(__name__)

# ========================================
# CONFIGURACIÓN DE LA APLICACIÓN FASTAPI
# ========================================

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    version=settings.PROJECT_VERSION,
    description="API del punto de venta: registro y gestión de pedidos"
)

app.include_router(api_router_v1, prefix=settings.API_V1_STR)

# ========================================
# MANEJO DE ERRORES
# ========================================

@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError):
    if exc.status_code >= 500:
        logger.error(f"❌ ERROR: {exc.code} en {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.info(f"⚠️  {exc.code} en {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception):
    logger.error(f"❌ ERROR inesperado en {request.method} {request.url.path}: {exc}", exc_info=exc)
    error = UnknownOrderError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())

# ========================================
# ENDPOINTS RAÍZ Y VERIFICACIÓN DE ESTADO
# ========================================

@app.get("/", tags=["Root"])
async def read_root():
    """Health check básico con nombre y versión del proyecto."""
    return {"message": f"Bienvenido a {settings.PROJECT_NAME} v{settings.PROJECT_VERSION}"}

# ========================================
# EVENTOS DEL CICLO DE VIDA DE LA APLICACIÓN
# ========================================

@app.on_event("startup")
async def startup_event():
    """Crea las tablas que falten."""
    await db_init.init_db()

@app.on_event("shutdown")
async def shutdown_event():
    """Espera la auditoría pendiente y cierra la conexión con Redis."""
    await deps.get_audit_service().drain()
    await deps.get_order_cache().close()
    logger.info("Aplicación detenida.")
