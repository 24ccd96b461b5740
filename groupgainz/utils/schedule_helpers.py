"""
Schedule Helpers - Utilidades para ventanas semanales.

Centraliza la lógica de:
- Conversión a la hora del servidor
- Cálculo de la semana de settlement (domingo a sábado)
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from groupgainz.config import get_settings

# Último instante de la semana: sábado 23:59:59.999
END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class WeekWindow:
    """Ventana semanal [week_start, week_end], ambos inclusivos."""

    week_start: datetime
    week_end: datetime

    @property
    def start_date(self) -> date:
        return self.week_start.date()

    @property
    def end_date(self) -> date:
        return self.week_end.date()

    def previous(self) -> "WeekWindow":
        """Semana anterior a esta."""
        return get_week_window(self.week_start - timedelta(days=1))

    def __str__(self) -> str:
        return f"{self.week_start.isoformat()} - {self.week_end.isoformat()}"


def to_server_time(dt: datetime | None = None, tz: str | None = None) -> datetime:
    """
    Normaliza un instante a hora del servidor (naive).

    Los datetimes con zona se convierten a la zona configurada; los naive
    se asumen ya expresados en hora del servidor.
    """
    zone = ZoneInfo(tz or get_settings().tz)

    if dt is None:
        return datetime.now(zone).replace(tzinfo=None)

    if dt.tzinfo is not None:
        return dt.astimezone(zone).replace(tzinfo=None)

    return dt


def server_now() -> datetime:
    """Ahora, en hora del servidor (naive). Para timestamps que se comparan con ventanas."""
    return to_server_time()


def get_week_window(now: datetime | None = None, tz: str | None = None) -> WeekWindow:
    """
    Calcula la semana de settlement que contiene `now`.

    Returns:
        WeekWindow: domingo 00:00:00.000 a sábado 23:59:59.999
    """
    now = to_server_time(now, tz)

    # weekday(): 0=Lunes ... 6=Domingo
    days_since_sunday = (now.weekday() + 1) % 7
    sunday = now.date() - timedelta(days=days_since_sunday)

    week_start = datetime.combine(sunday, time.min)
    week_end = datetime.combine(sunday + timedelta(days=6), END_OF_DAY)

    return WeekWindow(week_start=week_start, week_end=week_end)


def get_week_window_for_date(day: date) -> WeekWindow:
    """Semana de settlement que contiene un día concreto."""
    return get_week_window(datetime.combine(day, time(12, 0)))
