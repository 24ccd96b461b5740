#!/usr/bin/env python3
"""
Script para ejecutar el settlement semanal a mano.

Uso:
    python scripts/run_weekly_settlement.py
    python scripts/run_weekly_settlement.py --date 2024-01-10

Sin --date procesa la semana actual; con --date, la semana (domingo a
sábado) que contiene ese día. Re-ejecutar una semana es seguro para las
penalizaciones, pero duplica notificaciones salvo que
NOTIFICATION_DEDUPLICATION=true.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from groupgainz.config import get_settings
from groupgainz.db.database import close_db
from groupgainz.domain.entities.settlement import RunState
from groupgainz.scheduler.jobs.weekly_settlement import run_weekly_settlement
from groupgainz.utils.schedule_helpers import get_week_window, get_week_window_for_date

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(message)s",
)
logger = logging.getLogger(__name__)


async def main(reference_date: date | None) -> int:
    settings = get_settings()
    window = get_week_window_for_date(reference_date) if reference_date else get_week_window()

    logger.info(f"Entorno: {settings.app_env}")
    logger.info(f"Semana: {window}")
    logger.info(f"Umbral: {settings.point_threshold} puntos")

    try:
        result = await run_weekly_settlement(window=window)
    finally:
        await close_db()

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))

    if result.state == RunState.FAILED_FATAL:
        return 2
    return 0 if result.success else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ejecuta el settlement semanal")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Día de referencia (YYYY-MM-DD) de la semana a procesar",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.date)))
