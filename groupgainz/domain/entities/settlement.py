"""
Settlement Entities - Contratos, miembros y resultados del settlement semanal.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID


PENALTY_TYPE_WEEKLY_TALLY = "weekly_tally"
NOTIFICATION_TITLE_WEEKLY_CHECK = "Weekly Accountability Check"


class ContractStatus(str, Enum):
    """Estados del contrato de un grupo."""
    PENDING = "Pending"
    ACTIVE = "Active"
    PAUSED = "Paused"


class MemberRole(str, Enum):
    """Rol dentro del grupo (irrelevante para el settlement)."""
    ADMIN = "Admin"
    MEMBER = "Member"


class NotificationType(str, Enum):
    """Tipos de notificación que genera el settlement."""
    WORKOUT_MISSED = "workout_missed"


class RelatedEventType(str, Enum):
    PENALTY = "penalty"


# ==================== ENUMERACIÓN ====================


@dataclass(frozen=True)
class GroupMemberRef:
    """Miembro de un grupo con identidad mínima."""

    user_id: UUID
    name: str


@dataclass
class ActiveGroup:
    """Grupo con contrato activo y su roster."""

    contract_id: UUID
    group_id: UUID
    group_name: str
    members: list[GroupMemberRef] = field(default_factory=list)


# ==================== EVALUACIÓN ====================


@dataclass(frozen=True)
class Evaluation:
    """Resultado de comparar los puntos contra el umbral."""

    total_points: int
    threshold: int
    meets_threshold: bool


class ErrorScope(str, Enum):
    """Alcance de un error dentro del run."""
    RUN = "run"
    GROUP = "group"
    MEMBER = "member"


@dataclass(frozen=True)
class SettlementError:
    """Error recuperable (o fatal) producido por una unidad de trabajo."""

    scope: ErrorScope
    message: str
    group_id: UUID | None = None
    user_id: UUID | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class MemberSettlement:
    """
    Resultado del settlement de un miembro.

    `points` es None cuando no se pudieron obtener los puntos; en ese caso
    el miembro se salta (sin penalización ni notificación).
    """

    group_id: UUID
    member: GroupMemberRef
    points: int | None = None
    evaluation: Evaluation | None = None
    penalty_assigned: bool = False
    notification_sent: bool = False
    notification_skipped: bool = False
    errors: list[SettlementError] = field(default_factory=list)

    @property
    def penalized(self) -> bool:
        return self.evaluation is not None and not self.evaluation.meets_threshold


@dataclass
class GroupSettlement:
    """Resultado del settlement de un grupo completo."""

    group: ActiveGroup
    members: list[MemberSettlement] = field(default_factory=list)
    points_archived: int = 0
    errors: list[SettlementError] = field(default_factory=list)

    @property
    def all_errors(self) -> list[SettlementError]:
        """Errores del grupo y de sus miembros, en orden de procesamiento."""
        member_errors = [e for m in self.members for e in m.errors]
        return member_errors + self.errors


# ==================== REPORTE ====================


class RunState(str, Enum):
    """Estados terminales de una ejecución."""
    COMPLETED_CLEAN = "completed-clean"
    COMPLETED_WITH_ERRORS = "completed-with-errors"
    FAILED_FATAL = "failed-fatal"


@dataclass
class SettlementStats:
    """Contadores acumulados del run."""

    groups_processed: int = 0
    penalties_assigned: int = 0
    notifications_sent: int = 0
    points_archived: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "groupsProcessed": self.groups_processed,
            "penaltiesAssigned": self.penalties_assigned,
            "notificationsSent": self.notifications_sent,
            "pointsArchived": self.points_archived,
        }


@dataclass
class SettlementResult:
    """Único resultado observable de una ejecución del job semanal."""

    state: RunState
    message: str
    stats: SettlementStats = field(default_factory=SettlementStats)
    errors: list[SettlementError] = field(default_factory=list)
    groups: list[GroupSettlement] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Cuerpo JSON de la respuesta del trigger."""
        return {
            "success": self.success,
            "message": self.message,
            "stats": self.stats.to_dict(),
            "errors": [str(e) for e in self.errors],
        }


# ==================== RESUMEN SEMANAL ====================


@dataclass
class PenaltySummary:
    """Penalización registrada para un miembro en la semana."""

    user_id: UUID
    user_name: str
    points_earned: int
    point_threshold: int
    penalty_message: str


@dataclass
class NotificationSummary:
    """Notificación emitida a un miembro durante la semana."""

    user_id: UUID
    user_name: str
    title: str
    message: str
    notification_type: str
    created_at: datetime


@dataclass
class WeeklySummary:
    """Resumen de la semana de un grupo."""

    group_id: UUID
    week_start: date
    week_end: date
    total_members: int = 0
    average_points: int = 0
    penalties: list[PenaltySummary] = field(default_factory=list)
    notifications: list[NotificationSummary] = field(default_factory=list)

    @property
    def members_with_penalties(self) -> int:
        return len(self.penalties)

    def to_dict(self) -> dict[str, Any]:
        return {
            "groupId": str(self.group_id),
            "weekStart": self.week_start.isoformat(),
            "weekEnd": self.week_end.isoformat(),
            "totalMembers": self.total_members,
            "membersWithPenalties": self.members_with_penalties,
            "averagePoints": self.average_points,
            "penalties": [
                {
                    "userId": str(p.user_id),
                    "userName": p.user_name,
                    "pointsEarned": p.points_earned,
                    "pointThreshold": p.point_threshold,
                    "penaltyMessage": p.penalty_message,
                }
                for p in self.penalties
            ],
            "notifications": [
                {
                    "userId": str(n.user_id),
                    "userName": n.user_name,
                    "title": n.title,
                    "message": n.message,
                    "notificationType": n.notification_type,
                    "createdAt": n.created_at.isoformat(),
                }
                for n in self.notifications
            ],
        }
