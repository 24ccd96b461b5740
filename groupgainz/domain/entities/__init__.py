"""Domain Entities - Dataclasses del dominio."""

from groupgainz.domain.entities.settlement import (
    ActiveGroup,
    ContractStatus,
    ErrorScope,
    Evaluation,
    GroupMemberRef,
    GroupSettlement,
    MemberRole,
    MemberSettlement,
    NotificationSummary,
    NotificationType,
    RunState,
    SettlementError,
    SettlementResult,
    SettlementStats,
    WeeklySummary,
)

__all__ = [
    "ActiveGroup",
    "ContractStatus",
    "ErrorScope",
    "Evaluation",
    "GroupMemberRef",
    "GroupSettlement",
    "MemberRole",
    "MemberSettlement",
    "NotificationSummary",
    "NotificationType",
    "RunState",
    "SettlementError",
    "SettlementResult",
    "SettlementStats",
    "WeeklySummary",
]
