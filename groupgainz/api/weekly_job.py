"""
Weekly Job API endpoints.

Trigger manual del settlement semanal (útil para re-ejecutar una semana)
y resumen semanal de un grupo.
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from groupgainz.domain.entities.settlement import RunState
from groupgainz.scheduler.jobs.weekly_settlement import (
    load_weekly_summary,
    run_weekly_settlement,
)
from groupgainz.utils.errors import ErrorCategory, log_error
from groupgainz.utils.schedule_helpers import get_week_window, get_week_window_for_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weekly-job", tags=["weekly-job"])

# Triggers manuales desde el navegador
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class WeeklyJobStats(BaseModel):
    """Contadores del run."""
    groupsProcessed: int
    penaltiesAssigned: int
    notificationsSent: int
    pointsArchived: int


class WeeklyJobResponse(BaseModel):
    """Respuesta del weekly job (igual en 200 y en 500)."""
    success: bool
    message: str
    stats: WeeklyJobStats
    errors: list[str]


@router.options("")
async def weekly_job_preflight():
    """Preflight CORS."""
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.api_route(
    "",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    response_model=WeeklyJobResponse,
    responses={500: {"model": WeeklyJobResponse}},
)
async def trigger_weekly_job(reference_date: date | None = None):
    """
    Ejecuta el settlement semanal.

    Sin `reference_date` procesa la semana actual; con ella, la semana
    (domingo a sábado) que contiene esa fecha.
    """
    window = get_week_window_for_date(reference_date) if reference_date else None
    logger.info(f"Weekly job disparado manualmente (reference_date={reference_date})")

    result = await run_weekly_settlement(window=window)

    status_code = 500 if result.state == RunState.FAILED_FATAL else 200
    return JSONResponse(
        status_code=status_code,
        content=result.to_dict(),
        headers=CORS_HEADERS,
    )


@router.get("/summary/{group_id}")
async def weekly_summary(group_id: UUID, reference_date: date | None = None):
    """Penalizaciones y promedio de puntos de un grupo en la semana."""
    window = get_week_window_for_date(reference_date) if reference_date else get_week_window()

    try:
        summary = await load_weekly_summary(group_id, window)
    except Exception as e:
        log_error(e, "weekly_summary", ErrorCategory.DATABASE, {"group_id": str(group_id)})
        raise HTTPException(status_code=500, detail="Failed to load weekly summary")

    return summary.to_dict()
