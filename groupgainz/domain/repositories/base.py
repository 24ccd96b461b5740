"""
Repository Interfaces - Contratos para la capa de persistencia.

El settlement semanal solo habla con la base de datos a través de esta
interface, lo que permite probar el pipeline con colaboradores falsos y
cambiar de backend sin tocar la lógica de negocio.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from uuid import UUID

from groupgainz.domain.entities.settlement import ActiveGroup, WeeklySummary


class ISettlementRepository(ABC):
    """
    Interface del repositorio usado por el job semanal.

    Todas las operaciones actúan con credenciales de servicio, sobre los
    datos de todos los usuarios.
    """

    # ==================== Lecturas ====================

    @abstractmethod
    async def list_active_contracts_with_members(self) -> list[ActiveGroup]:
        """Grupos con contrato `Active` junto con sus miembros."""
        pass

    @abstractmethod
    async def sum_points(
        self, user_id: UUID, week_start: datetime, week_end: datetime
    ) -> int:
        """Suma de puntos del usuario en [week_start, week_end], 0 si no hay."""
        pass

    @abstractmethod
    async def notification_exists(
        self,
        user_id: UUID,
        group_id: UUID,
        notification_type: str,
        week_start_date: date,
    ) -> bool:
        """Indica si ya se emitió una notificación de ese tipo para la semana."""
        pass

    @abstractmethod
    async def get_weekly_summary(
        self, group_id: UUID, week_start: datetime, week_end: datetime
    ) -> WeeklySummary:
        """Resumen de penalizaciones y puntos de un grupo en la semana."""
        pass

    # ==================== Escrituras ====================

    @abstractmethod
    async def upsert_penalty(
        self,
        user_id: UUID,
        group_id: UUID,
        week_start: date,
        week_end: date,
        points_earned: int,
        threshold: int,
        message: str,
    ) -> None:
        """
        Crea o sobrescribe la penalización de (user_id, group_id, week_start).

        Nunca debe crear dos filas para la misma llave.
        """
        pass

    @abstractmethod
    async def insert_notification(
        self,
        user_id: UUID,
        group_id: UUID,
        title: str,
        message: str,
        notification_type: str,
        week_start_date: date | None = None,
    ) -> None:
        """Inserta una notificación (insert simple, sin llave única)."""
        pass

    @abstractmethod
    async def archive_weekly_points(
        self, group_id: UUID, week_start: datetime, week_end: datetime
    ) -> int:
        """
        Archiva los point transactions del grupo en el rango.

        Debe ser atómico del lado del servidor (una sola sentencia o función
        SQL); nunca leer y luego borrar desde la aplicación, porque se
        perderían transacciones que lleguen en paralelo.

        Returns:
            Número de filas archivadas
        """
        pass
