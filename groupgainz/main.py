"""
GroupGainz - Weekly Settlement

FastAPI application que programa y expone el cierre semanal de
accountability de los grupos.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from groupgainz.api.weekly_job import router as weekly_job_router
from groupgainz.config import get_settings

# Configurar logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle de la aplicación."""
    logger.info("=" * 50)
    logger.info("Iniciando GroupGainz - Weekly Settlement")
    logger.info("=" * 50)

    # ==================== STARTUP ====================

    # 1. Inicializar base de datos
    logger.info("Inicializando base de datos...")
    from groupgainz.db.database import init_db
    await init_db()

    # 2. Limpiar una cancelación pendiente de un shutdown anterior
    # (también la usan los runs disparados por HTTP)
    from groupgainz.scheduler.jobs.weekly_settlement import reset_cancellation
    reset_cancellation()

    # 3. Inicializar scheduler
    if settings.scheduler_enabled:
        logger.info("Inicializando scheduler...")
        from groupgainz.scheduler.setup import setup_scheduler
        await setup_scheduler()
    else:
        logger.info("Scheduler deshabilitado (SCHEDULER_ENABLED=false)")

    logger.info("GroupGainz listo!")

    yield

    # ==================== SHUTDOWN ====================

    logger.info("Deteniendo GroupGainz...")

    # Detener scheduler (cancela un settlement en curso entre grupos)
    from groupgainz.scheduler.setup import shutdown_scheduler
    await shutdown_scheduler()

    # Cerrar conexiones de BD
    from groupgainz.db.database import close_db
    await close_db()

    logger.info("GroupGainz detenido.")


# Crear aplicación FastAPI
app = FastAPI(
    title="GroupGainz - Weekly Settlement",
    description="Cierre semanal de accountability: penalizaciones, notificaciones y archivo de puntos",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(weekly_job_router)


# ==================== ROUTES ====================


@app.get("/health")
async def health_check():
    """Health check básico."""
    return {"status": "healthy", "service": "groupgainz-settlement"}


@app.get("/health/detailed")
async def health_check_detailed():
    """Health check detallado."""
    from groupgainz.db.database import check_db_connection
    from groupgainz.scheduler.setup import get_job_status, get_scheduler

    db_ok = await check_db_connection()
    scheduler = get_scheduler()

    return {
        "status": "healthy" if db_ok else "degraded",
        "service": "groupgainz-settlement",
        "version": "1.0.0",
        "environment": settings.app_env,
        "checks": {
            "database": {"status": "healthy" if db_ok else "unhealthy"},
            "scheduler": {
                "status": "running" if scheduler.running else "stopped",
                "jobs": get_job_status(),
            },
        },
        "settlement": {
            "point_threshold": settings.point_threshold,
            "notification_deduplication": settings.notification_deduplication,
        },
    }


# ==================== DEV MODE ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "groupgainz.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
