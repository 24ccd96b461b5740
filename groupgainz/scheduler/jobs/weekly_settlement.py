"""Weekly Settlement Job - Cierre semanal de accountability."""

import asyncio
import logging
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from groupgainz.config import get_settings
from groupgainz.db.database import get_session
from groupgainz.db.repositories.settlement import SettlementRepository
from groupgainz.domain.entities.settlement import (
    ErrorScope,
    RunState,
    SettlementError,
    SettlementResult,
    WeeklySummary,
)
from groupgainz.domain.services.messages import MessageProvider
from groupgainz.domain.services.settlement_service import MESSAGE_FAILED, SettlementService
from groupgainz.utils.errors import ErrorCategory, log_error
from groupgainz.utils.schedule_helpers import WeekWindow, get_week_window

logger = logging.getLogger(__name__)
settings = get_settings()

# Se activa al apagar la app; el run se detiene entre grupos
_cancel_event = asyncio.Event()


def request_cancellation() -> None:
    """Pide detener el settlement en curso después del grupo actual."""
    _cancel_event.set()
    logger.info("Cancelación del weekly settlement solicitada")


def reset_cancellation() -> None:
    _cancel_event.clear()


async def run_weekly_settlement(
    now: datetime | None = None,
    window: WeekWindow | None = None,
    messages: MessageProvider | None = None,
) -> SettlementResult:
    """
    Ejecuta el settlement semanal contra la base de datos.

    Lo usan tanto el scheduler como el trigger HTTP manual.
    """
    try:
        async with get_session() as session:
            service = SettlementService(SettlementRepository(session), messages=messages)
            return await service.run(now=now, window=window, cancel_event=_cancel_event)
    except Exception as e:
        # Solo llega aquí si no se pudo abrir la sesión
        context = log_error(e, "run_weekly_settlement", ErrorCategory.DATABASE)
        return SettlementResult(
            state=RunState.FAILED_FATAL,
            message=MESSAGE_FAILED,
            errors=[
                SettlementError(
                    scope=ErrorScope.RUN,
                    message=f"Failed to fetch active groups: {context.message}",
                )
            ],
        )


async def load_weekly_summary(group_id: UUID, window: WeekWindow) -> WeeklySummary:
    """Resumen de la semana de un grupo (solo lectura)."""
    async with get_session() as session:
        service = SettlementService(SettlementRepository(session))
        return await service.get_weekly_summary(group_id, window)


async def weekly_settlement_job(now: datetime | None = None) -> None:
    """
    Evalúa a todos los miembros de grupos activos contra el umbral semanal.

    Se ejecuta una vez por semana (por defecto sábado 23:30). La semana se
    toma de la hora programada del disparo, así un run atrasado que cae en
    domingo sigue liquidando la semana que acaba de cerrar.
    """
    from groupgainz.scheduler.setup import get_scheduled_fire_time

    now = now or datetime.now(ZoneInfo(settings.tz))
    window = get_week_window(get_scheduled_fire_time(now))
    logger.info(f"Ejecutando Weekly Settlement para la semana {window}...")

    result = await run_weekly_settlement(window=window)

    if result.state == RunState.FAILED_FATAL:
        logger.error(f"Weekly Settlement falló: {result.errors[0]}")
    elif result.errors:
        logger.warning(
            f"Weekly Settlement terminado con {len(result.errors)} errores: "
            f"{[str(e) for e in result.errors]}"
        )
    else:
        logger.info(f"Weekly Settlement terminado: {result.stats.to_dict()}")
