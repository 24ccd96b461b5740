"""
Settlement Service - Cierre semanal de accountability.

Pipeline por ejecución:
1. Calcula la ventana semanal (domingo a sábado)
2. Lista los grupos con contrato activo y sus miembros
3. Por miembro: suma puntos, evalúa contra el umbral, registra la
   penalización y emite la notificación si no lo alcanzó
4. Por grupo: archiva los puntos de la semana
5. Consolida contadores y errores en un SettlementResult

Cada unidad de trabajo devuelve un resultado estructurado
(MemberSettlement / GroupSettlement); los errores recuperables quedan
dentro de esos resultados y solo el fallo al listar grupos aborta el run.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, TypeVar
from uuid import UUID

from groupgainz.config import get_settings
from groupgainz.domain.entities.settlement import (
    NOTIFICATION_TITLE_WEEKLY_CHECK,
    ActiveGroup,
    ErrorScope,
    Evaluation,
    GroupMemberRef,
    GroupSettlement,
    MemberSettlement,
    NotificationType,
    RunState,
    SettlementError,
    SettlementResult,
    SettlementStats,
    WeeklySummary,
)
from groupgainz.domain.repositories.base import ISettlementRepository
from groupgainz.domain.services.messages import (
    MessageCategory,
    MessageProvider,
    RandomMessageProvider,
)
from groupgainz.utils.errors import ErrorCategory, log_error
from groupgainz.utils.schedule_helpers import WeekWindow, get_week_window

logger = logging.getLogger(__name__)

T = TypeVar("T")

MESSAGE_SUCCESS = "Weekly job completed successfully"
MESSAGE_NO_GROUPS = "No active groups to process"
MESSAGE_FAILED = "Weekly job failed"


def evaluate(total_points: int, threshold: int) -> Evaluation:
    """El miembro cumple si total_points >= threshold."""
    return Evaluation(
        total_points=total_points,
        threshold=threshold,
        meets_threshold=total_points >= threshold,
    )


class RunReporter:
    """Acumula los resultados por grupo en el resultado final del run."""

    def __init__(self) -> None:
        self.stats = SettlementStats()
        self.errors: list[SettlementError] = []
        self.groups: list[GroupSettlement] = []

    def add_group(self, settlement: GroupSettlement) -> None:
        self.groups.append(settlement)
        self.stats.groups_processed += 1
        self.stats.penalties_assigned += sum(
            1 for m in settlement.members if m.penalty_assigned
        )
        self.stats.notifications_sent += sum(
            1 for m in settlement.members if m.notification_sent
        )
        self.stats.points_archived += settlement.points_archived
        self.errors.extend(settlement.all_errors)

    def add_error(self, error: SettlementError) -> None:
        self.errors.append(error)

    def build(self) -> SettlementResult:
        if self.errors:
            return SettlementResult(
                state=RunState.COMPLETED_WITH_ERRORS,
                message=f"Weekly job completed with {len(self.errors)} errors",
                stats=self.stats,
                errors=self.errors,
                groups=self.groups,
            )

        return SettlementResult(
            state=RunState.COMPLETED_CLEAN,
            message=MESSAGE_SUCCESS,
            stats=self.stats,
            groups=self.groups,
        )


class SettlementService:
    """
    Servicio de dominio del settlement semanal.

    Uso:
        service = SettlementService(repository)
        result = await service.run()
        if not result.success:
            # revisar result.errors; re-ejecutar es seguro para penalizaciones
    """

    def __init__(
        self,
        repository: ISettlementRepository,
        messages: MessageProvider | None = None,
        threshold: int | None = None,
        notification_deduplication: bool | None = None,
        request_timeout: float | None = None,
    ):
        settings = get_settings()
        self._repo = repository
        self._messages = messages or RandomMessageProvider()
        self.threshold = settings.point_threshold if threshold is None else threshold
        self.notification_deduplication = (
            settings.notification_deduplication
            if notification_deduplication is None
            else notification_deduplication
        )
        self._timeout = (
            settings.request_timeout_seconds if request_timeout is None else request_timeout
        )

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Ejecuta una llamada al repositorio con el timeout configurado."""
        if not self._timeout:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self._timeout)

    # ==================== MIEMBRO ====================

    async def aggregate_score(self, user_id: UUID, window: WeekWindow) -> int:
        """Suma de puntos del miembro dentro de la ventana."""
        total = await self._call(
            self._repo.sum_points(user_id, window.week_start, window.week_end)
        )
        return int(total or 0)

    async def record_penalty(
        self, group: ActiveGroup, member: GroupMemberRef, evaluation: Evaluation, window: WeekWindow
    ) -> None:
        """Upsert de la penalización de la semana con un mensaje aleatorio."""
        message = self._messages.pick(MessageCategory.PENALTY)
        await self._call(
            self._repo.upsert_penalty(
                user_id=member.user_id,
                group_id=group.group_id,
                week_start=window.start_date,
                week_end=window.end_date,
                points_earned=evaluation.total_points,
                threshold=evaluation.threshold,
                message=message,
            )
        )

    async def emit_notification(
        self, group: ActiveGroup, member: GroupMemberRef, window: WeekWindow
    ) -> bool:
        """
        Inserta la notificación de semana no cumplida.

        Returns:
            False si se omitió por de-duplicación, True si se insertó
        """
        notification_type = NotificationType.WORKOUT_MISSED.value

        if self.notification_deduplication:
            exists = await self._call(
                self._repo.notification_exists(
                    member.user_id, group.group_id, notification_type, window.start_date
                )
            )
            if exists:
                logger.info(
                    f"Notificación ya emitida para {member.name} en {group.group_name}, omitiendo"
                )
                return False

        message = self._messages.pick(MessageCategory.WORKOUT_MISSED)
        await self._call(
            self._repo.insert_notification(
                user_id=member.user_id,
                group_id=group.group_id,
                title=NOTIFICATION_TITLE_WEEKLY_CHECK,
                message=message,
                notification_type=notification_type,
                week_start_date=window.start_date,
            )
        )
        return True

    def _member_error(
        self, group: ActiveGroup, member: GroupMemberRef, message: str
    ) -> SettlementError:
        return SettlementError(
            scope=ErrorScope.MEMBER,
            message=f"{message} for user {member.name} in group {group.group_name}",
            group_id=group.group_id,
            user_id=member.user_id,
        )

    async def settle_member(
        self, group: ActiveGroup, member: GroupMemberRef, window: WeekWindow
    ) -> MemberSettlement:
        """Evalúa un miembro; los fallos quedan en el resultado, nunca se propagan."""
        result = MemberSettlement(group_id=group.group_id, member=member)
        extra: dict[str, Any] = {
            "group_id": str(group.group_id),
            "user_id": str(member.user_id),
        }

        try:
            result.points = await self.aggregate_score(member.user_id, window)
        except Exception as e:
            log_error(e, "sum_points", ErrorCategory.DATABASE, extra)
            result.errors.append(self._member_error(group, member, "Failed to fetch points"))
            return result

        result.evaluation = evaluate(result.points, self.threshold)
        logger.info(
            f"{member.name} obtuvo {result.points} puntos esta semana "
            f"(umbral: {self.threshold})"
        )

        if not result.penalized:
            return result

        # Penalización y notificación son independientes entre sí
        try:
            await self.record_penalty(group, member, result.evaluation, window)
            result.penalty_assigned = True
            logger.info(f"Penalización asignada a {member.name}")
        except Exception as e:
            log_error(e, "upsert_penalty", ErrorCategory.DATABASE, extra)
            result.errors.append(self._member_error(group, member, "Failed to create penalty"))

        try:
            sent = await self.emit_notification(group, member, window)
            result.notification_sent = sent
            result.notification_skipped = not sent
            if sent:
                logger.info(f"Notificación enviada a {member.name}")
        except Exception as e:
            log_error(e, "insert_notification", ErrorCategory.DATABASE, extra)
            result.errors.append(
                self._member_error(group, member, "Failed to create notification")
            )

        return result

    # ==================== GRUPO ====================

    async def archive_group_points(self, group: ActiveGroup, window: WeekWindow) -> int:
        """Archiva (atómicamente, en el servidor) los puntos del grupo."""
        archived = await self._call(
            self._repo.archive_weekly_points(group.group_id, window.week_start, window.week_end)
        )
        return int(archived or 0)

    async def settle_group(self, group: ActiveGroup, window: WeekWindow) -> GroupSettlement:
        """Evalúa todos los miembros del grupo y luego archiva sus puntos."""
        settlement = GroupSettlement(group=group)
        logger.info(f"Procesando grupo: {group.group_name} ({group.group_id})")

        try:
            for member in group.members:
                settlement.members.append(await self.settle_member(group, member, window))
        except Exception as e:
            context = log_error(
                e, "settle_group", ErrorCategory.SETTLEMENT, {"group_id": str(group.group_id)}
            )
            settlement.errors.append(
                SettlementError(
                    scope=ErrorScope.GROUP,
                    message=f"Failed to process group {group.group_name}: {context.message}",
                    group_id=group.group_id,
                )
            )
            return settlement

        try:
            settlement.points_archived = await self.archive_group_points(group, window)
            logger.info(
                f"Archivados {settlement.points_archived} point transactions "
                f"del grupo {group.group_name}"
            )
        except Exception as e:
            log_error(
                e, "archive_weekly_points", ErrorCategory.DATABASE, {"group_id": str(group.group_id)}
            )
            settlement.errors.append(
                SettlementError(
                    scope=ErrorScope.GROUP,
                    message=f"Failed to archive points for group {group.group_name}",
                    group_id=group.group_id,
                )
            )

        return settlement

    # ==================== RUN ====================

    async def run(
        self,
        now: datetime | None = None,
        window: WeekWindow | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> SettlementResult:
        """
        Ejecuta el settlement completo de una semana.

        Args:
            now: Instante de referencia (por defecto, ahora en hora del servidor)
            window: Ventana explícita; tiene prioridad sobre `now`
            cancel_event: Si se activa, el run se detiene entre grupos

        Returns:
            SettlementResult con contadores y errores
        """
        window = window or get_week_window(now)
        logger.info(f"Procesando weekly job para la semana: {window}")

        try:
            groups = await self._call(self._repo.list_active_contracts_with_members())
        except Exception as e:
            context = log_error(e, "list_active_contracts_with_members", ErrorCategory.DATABASE)
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

        if not groups:
            logger.info("No se encontraron grupos activos")
            return SettlementResult(state=RunState.COMPLETED_CLEAN, message=MESSAGE_NO_GROUPS)

        logger.info(f"Encontrados {len(groups)} grupos activos")
        reporter = RunReporter()

        for group in groups:
            if cancel_event is not None and cancel_event.is_set():
                processed = reporter.stats.groups_processed
                logger.warning(f"Weekly job cancelado después de {processed} grupos")
                reporter.add_error(
                    SettlementError(
                        scope=ErrorScope.RUN,
                        message=f"Weekly job cancelled after {processed} groups",
                    )
                )
                break

            reporter.add_group(await self.settle_group(group, window))

        result = reporter.build()
        logger.info(f"Weekly job terminado: {result.to_dict()}")
        return result

    # ==================== RESUMEN ====================

    async def get_weekly_summary(self, group_id: UUID, window: WeekWindow) -> WeeklySummary:
        """Resumen de solo lectura de la semana de un grupo."""
        return await self._call(
            self._repo.get_weekly_summary(group_id, window.week_start, window.week_end)
        )
