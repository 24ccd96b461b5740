"""Repository del settlement semanal sobre SQLAlchemy."""

import logging
import math
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator
from uuid import UUID

from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from groupgainz.db.functions import ARCHIVE_WEEKLY_POINTS
from groupgainz.db.models import (
    ContractModel,
    GroupMemberModel,
    GroupModel,
    NotificationModel,
    PenaltyModel,
    PointTransactionModel,
    UserModel,
)
from groupgainz.domain.entities.settlement import (
    PENALTY_TYPE_WEEKLY_TALLY,
    ActiveGroup,
    ContractStatus,
    GroupMemberRef,
    NotificationSummary,
    PenaltySummary,
    RelatedEventType,
    WeeklySummary,
)
from groupgainz.domain.repositories.base import ISettlementRepository
from groupgainz.utils.errors import DatabaseError, retry_database
from groupgainz.utils.schedule_helpers import server_now

logger = logging.getLogger(__name__)


class SettlementRepository(ISettlementRepository):
    """
    Implementación de ISettlementRepository.

    Cada escritura se confirma por separado: una falla en un miembro no
    revierte lo ya registrado para los demás.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def dialect(self) -> str:
        return self.session.get_bind().dialect.name

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        """
        Confirma al salir; si algo falla, revierte y re-lanza.

        Incluye CancelledError (timeout de asyncio.wait_for): una escritura
        cancelada no puede quedar pendiente en la sesión compartida.
        """
        try:
            yield
            await self.session.commit()
        except BaseException:
            await self.session.rollback()
            raise

    # ==================== Lecturas ====================

    @retry_database()
    async def list_active_contracts_with_members(self) -> list[ActiveGroup]:
        async with self._transaction():
            result = await self.session.execute(
                select(ContractModel.id, GroupModel.id, GroupModel.name)
                .join(GroupModel, ContractModel.group_id == GroupModel.id)
                .where(ContractModel.status == ContractStatus.ACTIVE.value)
                .order_by(GroupModel.name, ContractModel.created_at)
            )

            groups: dict[UUID, ActiveGroup] = {}
            for contract_id, group_id, group_name in result.all():
                # Un grupo tiene a lo sumo un contrato activo; si hay más, se procesa una vez
                if group_id not in groups:
                    groups[group_id] = ActiveGroup(
                        contract_id=contract_id,
                        group_id=group_id,
                        group_name=group_name,
                    )

            if not groups:
                return []

            members = await self.session.execute(
                select(GroupMemberModel.group_id, UserModel.id, UserModel.name)
                .join(UserModel, GroupMemberModel.user_id == UserModel.id)
                .where(GroupMemberModel.group_id.in_(list(groups)))
                .order_by(GroupMemberModel.joined_at, UserModel.name)
            )
            for group_id, user_id, name in members.all():
                groups[group_id].members.append(GroupMemberRef(user_id=user_id, name=name))

        # Igual que un inner join contra group_members: sin miembros no hay nada que evaluar
        active = [group for group in groups.values() if group.members]
        logger.debug(f"{len(active)} grupos con contrato activo y miembros")
        return active

    @retry_database()
    async def sum_points(self, user_id: UUID, week_start: datetime, week_end: datetime) -> int:
        async with self._transaction():
            result = await self.session.execute(
                select(func.coalesce(func.sum(PointTransactionModel.points), 0)).where(
                    and_(
                        PointTransactionModel.user_id == user_id,
                        PointTransactionModel.created_at >= week_start,
                        PointTransactionModel.created_at <= week_end,
                    )
                )
            )
            return int(result.scalar_one())

    async def notification_exists(
        self,
        user_id: UUID,
        group_id: UUID,
        notification_type: str,
        week_start_date: date,
    ) -> bool:
        async with self._transaction():
            result = await self.session.execute(
                select(
                    exists().where(
                        and_(
                            NotificationModel.user_id == user_id,
                            NotificationModel.group_id == group_id,
                            NotificationModel.notification_type == notification_type,
                            NotificationModel.week_start_date == week_start_date,
                        )
                    )
                )
            )
            return bool(result.scalar())

    async def get_weekly_summary(
        self, group_id: UUID, week_start: datetime, week_end: datetime
    ) -> WeeklySummary:
        summary = WeeklySummary(
            group_id=group_id,
            week_start=week_start.date(),
            week_end=week_end.date(),
        )

        async with self._transaction():
            penalties = await self.session.execute(
                select(PenaltyModel, UserModel.name)
                .join(UserModel, PenaltyModel.user_id == UserModel.id)
                .where(
                    and_(
                        PenaltyModel.group_id == group_id,
                        PenaltyModel.week_start_date == summary.week_start,
                    )
                )
                .order_by(PenaltyModel.points_earned, UserModel.name)
            )
            for penalty, user_name in penalties.all():
                summary.penalties.append(
                    PenaltySummary(
                        user_id=penalty.user_id,
                        user_name=user_name,
                        points_earned=penalty.points_earned,
                        point_threshold=penalty.point_threshold,
                        penalty_message=penalty.penalty_message,
                    )
                )

            notifications = await self.session.execute(
                select(NotificationModel, UserModel.name)
                .join(UserModel, NotificationModel.user_id == UserModel.id)
                .where(
                    and_(
                        NotificationModel.group_id == group_id,
                        NotificationModel.created_at >= week_start,
                        NotificationModel.created_at <= week_end,
                    )
                )
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            )
            for notification, user_name in notifications.all():
                summary.notifications.append(
                    NotificationSummary(
                        user_id=notification.user_id,
                        user_name=user_name,
                        title=notification.title,
                        message=notification.message,
                        notification_type=notification.notification_type,
                        created_at=notification.created_at,
                    )
                )

            member_ids = select(GroupMemberModel.user_id).where(
                GroupMemberModel.group_id == group_id
            )
            total_members = await self.session.execute(
                select(func.count()).select_from(member_ids.subquery())
            )
            summary.total_members = int(total_members.scalar_one())

            total_points = await self.session.execute(
                select(func.coalesce(func.sum(PointTransactionModel.points), 0)).where(
                    and_(
                        PointTransactionModel.user_id.in_(member_ids),
                        PointTransactionModel.created_at >= week_start,
                        PointTransactionModel.created_at <= week_end,
                    )
                )
            )
            points = int(total_points.scalar_one())

        if summary.total_members:
            # Redondeo "half up", no el de banquero de round()
            summary.average_points = math.floor(points / summary.total_members + 0.5)

        return summary

    # ==================== Escrituras ====================

    def _insert(self):
        """Insert con soporte ON CONFLICT del dialecto actual."""
        if self.dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif self.dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise DatabaseError(
                f"Upsert no soportado para el dialecto '{self.dialect}'",
                details={"dialect": self.dialect},
            )
        return insert

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
        insert = self._insert()
        stmt = insert(PenaltyModel).values(
            user_id=user_id,
            group_id=group_id,
            week_start_date=week_start,
            week_end_date=week_end,
            points_earned=points_earned,
            point_threshold=threshold,
            penalty_message=message,
            penalty_type=PENALTY_TYPE_WEEKLY_TALLY,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "group_id", "week_start_date"],
            set_={
                "week_end_date": stmt.excluded.week_end_date,
                "points_earned": stmt.excluded.points_earned,
                "point_threshold": stmt.excluded.point_threshold,
                "penalty_message": stmt.excluded.penalty_message,
                "penalty_type": stmt.excluded.penalty_type,
                "updated_at": server_now(),
            },
        )

        async with self._transaction():
            await self.session.execute(stmt)

    async def insert_notification(
        self,
        user_id: UUID,
        group_id: UUID,
        title: str,
        message: str,
        notification_type: str,
        week_start_date: date | None = None,
    ) -> None:
        async with self._transaction():
            self.session.add(
                NotificationModel(
                    user_id=user_id,
                    group_id=group_id,
                    title=title,
                    message=message,
                    notification_type=notification_type,
                    related_event_type=RelatedEventType.PENALTY.value,
                    week_start_date=week_start_date,
                )
            )
            await self.session.flush()

    async def archive_weekly_points(
        self, group_id: UUID, week_start: datetime, week_end: datetime
    ) -> int:
        async with self._transaction():
            if self.dialect == "postgresql":
                result = await self.session.execute(
                    select(getattr(func, ARCHIVE_WEEKLY_POINTS)(group_id, week_start, week_end))
                )
                archived = int(result.scalar_one() or 0)
            else:
                # Una sola sentencia UPDATE: atómica, sin leer-y-luego-borrar
                member_ids = select(GroupMemberModel.user_id).where(
                    GroupMemberModel.group_id == group_id
                )
                result = await self.session.execute(
                    update(PointTransactionModel)
                    .where(
                        and_(
                            PointTransactionModel.user_id.in_(member_ids),
                            PointTransactionModel.created_at >= week_start,
                            PointTransactionModel.created_at <= week_end,
                            PointTransactionModel.archived_at.is_(None),
                        )
                    )
                    .values(archived_at=server_now())
                    .execution_options(synchronize_session=False)
                )
                archived = result.rowcount or 0

        return archived
