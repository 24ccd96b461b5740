"""Configuración del scheduler con APScheduler."""

import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from groupgainz.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

WEEKLY_SETTLEMENT_JOB_ID = "weekly_settlement"
MISFIRE_GRACE_SECONDS = 3600

# Scheduler global
_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    """Obtiene la instancia del scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(
            timezone=settings.tz,
            job_defaults={
                "coalesce": True,  # Combinar ejecuciones perdidas
                "max_instances": 1,  # Nunca dos settlements en paralelo en este proceso
                "misfire_grace_time": MISFIRE_GRACE_SECONDS,
            },
        )
    return _scheduler


def build_settlement_trigger() -> CronTrigger:
    """Trigger semanal del settlement (por defecto sábados 23:30)."""
    return CronTrigger(
        day_of_week=settings.settlement_day_of_week,
        hour=settings.settlement_hour,
        minute=settings.settlement_minute,
        timezone=settings.tz,
    )


def get_scheduled_fire_time(now: datetime) -> datetime:
    """
    Hora programada del run que corresponde a `now`.

    Un run atrasado (dentro de misfire_grace_time) cruza la medianoche del
    sábado; la semana a liquidar es la de la hora programada, no la del reloj.
    Si `now` no cae tras un disparo programado, devuelve `now`.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo(settings.tz))

    earliest = now - timedelta(seconds=MISFIRE_GRACE_SECONDS)
    fire_time = build_settlement_trigger().get_next_fire_time(None, earliest)
    if fire_time is None or fire_time > now:
        return now
    return fire_time


async def setup_scheduler() -> AsyncIOScheduler:
    """Configura y arranca el scheduler con el job semanal."""
    scheduler = get_scheduler()

    from groupgainz.scheduler.jobs.weekly_settlement import (
        reset_cancellation,
        weekly_settlement_job,
    )

    reset_cancellation()

    # ==================== WEEKLY SETTLEMENT ====================
    # Por defecto sábados 23:30, antes de que cierre la ventana domingo-sábado
    scheduler.add_job(
        weekly_settlement_job,
        build_settlement_trigger(),
        id=WEEKLY_SETTLEMENT_JOB_ID,
        name="Weekly Settlement",
        replace_existing=True,
    )
    logger.info(
        f"Job configurado: Weekly Settlement ({settings.settlement_day_of_week} "
        f"{settings.settlement_hour:02d}:{settings.settlement_minute:02d})"
    )

    # Iniciar scheduler si no está corriendo
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler iniciado")

    return scheduler


async def shutdown_scheduler() -> None:
    """Detiene el scheduler y pide cancelar un settlement en curso."""
    from groupgainz.scheduler.jobs.weekly_settlement import request_cancellation

    request_cancellation()

    scheduler = get_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler detenido")


def get_job_status() -> list[dict]:
    """Obtiene el estado de todos los jobs."""
    scheduler = get_scheduler()
    jobs = []

    for job in scheduler.get_jobs():
        next_run = getattr(job, "next_run_time", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": next_run.isoformat() if next_run else None,
            "trigger": str(job.trigger),
        })

    return jobs
