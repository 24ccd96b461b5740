"""
Modelos SQLAlchemy - GroupGainz.

Tablas que lee y escribe el settlement semanal. Usuarios, grupos,
contratos y point transactions los crean otros flujos (onboarding, CRUD
de grupos, check-ins, kudos); el job solo los lee, salvo `archived_at`.
"""

import uuid
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupgainz.db.database import Base
from groupgainz.domain.entities.settlement import (
    PENALTY_TYPE_WEEKLY_TALLY,
    ContractStatus,
    MemberRole,
    RelatedEventType,
)
from groupgainz.utils.schedule_helpers import server_now

# ============================================================
# USERS & GROUPS
# ============================================================


class UserModel(Base):
    """Identidad mínima del usuario."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=server_now)

    memberships: Mapped[list["GroupMemberModel"]] = relationship(back_populates="user")


class GroupModel(Base):
    """Grupo de entrenamiento."""

    __tablename__ = "groups"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=server_now)

    # Relationships
    members: Mapped[list["GroupMemberModel"]] = relationship(back_populates="group")
    contracts: Mapped[list["ContractModel"]] = relationship(back_populates="group")


class GroupMemberModel(Base):
    """Membresía usuario-grupo."""

    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), default=MemberRole.MEMBER.value)

    joined_at: Mapped[datetime] = mapped_column(DateTime, default=server_now)

    group: Mapped["GroupModel"] = relationship(back_populates="members")
    user: Mapped["UserModel"] = relationship(back_populates="memberships")


# ============================================================
# CONTRACTS
# ============================================================


class ContractModel(Base):
    """Contrato de accountability de un grupo (horario + ubicación)."""

    __tablename__ = "contracts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), default=ContractStatus.PENDING.value)

    # Horario y ubicación (los gestiona el CRUD de contratos)
    schedule: Mapped[str | None] = mapped_column(Text)
    location_name: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=server_now)

    group: Mapped["GroupModel"] = relationship(back_populates="contracts")


# ============================================================
# POINTS
# ============================================================


class PointTransactionModel(Base):
    """Ledger append-only de puntos (check-ins, kudos)."""

    __tablename__ = "point_transactions"
    __table_args__ = (Index("ix_point_transactions_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    check_in_id: Mapped[UUID | None] = mapped_column(Uuid)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=server_now, nullable=False)
    # Marcado por el settlement semanal; las filas archivadas siguen contando
    archived_at: Mapped[datetime | None] = mapped_column(DateTime)


# ============================================================
# PENALTIES & NOTIFICATIONS
# ============================================================


class PenaltyModel(Base):
    """Penalización semanal: una por (usuario, grupo, semana)."""

    __tablename__ = "penalties"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "group_id", "week_start_date", name="uq_penalties_user_group_week"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )

    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Snapshot al momento del settlement
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    point_threshold: Mapped[int] = mapped_column(Integer, nullable=False)

    penalty_message: Mapped[str] = mapped_column(Text, nullable=False)
    penalty_type: Mapped[str] = mapped_column(String(50), default=PENALTY_TYPE_WEEKLY_TALLY)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=server_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=server_now, onupdate=server_now
    )

    user: Mapped["UserModel"] = relationship()


class NotificationModel(Base):
    """Mensaje para el usuario. Sin llave única: re-ejecutar el job duplica."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_group_week", "user_id", "group_id", "week_start_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("groups.id", ondelete="CASCADE")
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    related_event_type: Mapped[str | None] = mapped_column(
        String(50), default=RelatedEventType.PENALTY.value
    )
    week_start_date: Mapped[date | None] = mapped_column(Date)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=server_now)
