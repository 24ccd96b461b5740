"""Pytest configuration and fixtures for GroupGainz settlement tests."""

import os
import uuid
from datetime import date, datetime
from uuid import UUID

import pytest

# Set test environment
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["POINT_THRESHOLD"] = "20"
os.environ["NOTIFICATION_DEDUPLICATION"] = "false"

from groupgainz.domain.entities.settlement import (  # noqa: E402
    ActiveGroup,
    GroupMemberRef,
    PenaltySummary,
    WeeklySummary,
)
from groupgainz.domain.repositories.base import ISettlementRepository  # noqa: E402
from groupgainz.domain.services.messages import MessageCategory, MessageProvider  # noqa: E402
from groupgainz.utils.schedule_helpers import WeekWindow, get_week_window  # noqa: E402


# ==================== FAKES ====================


class FixedMessageProvider(MessageProvider):
    """Devuelve siempre el mismo texto por categoría y registra lo pedido."""

    def __init__(self) -> None:
        self.picked: list[MessageCategory] = []

    def pick(self, category: MessageCategory) -> str:
        self.picked.append(category)
        return f"{category.value} message"


class FakeSettlementRepository(ISettlementRepository):
    """
    Repositorio en memoria.

    `fail_on` mapea el nombre de una operación a un predicado sobre sus
    argumentos; si el predicado es verdadero, la operación lanza.
    """

    def __init__(self, groups: list[ActiveGroup] | None = None) -> None:
        self.groups = groups or []
        self.points: dict[UUID, list[tuple[datetime, int]]] = {}
        self.penalties: dict[tuple[UUID, UUID, date], dict] = {}
        self.notifications: list[dict] = []
        self.archived: list[tuple[UUID, datetime, datetime]] = []
        self.fail_on: dict[str, object] = {}
        self.calls: list[str] = []

    def add_points(self, user_id: UUID, when: datetime, points: int) -> None:
        self.points.setdefault(user_id, []).append((when, points))

    def _maybe_fail(self, operation: str, *args) -> None:
        self.calls.append(operation)
        predicate = self.fail_on.get(operation)
        if predicate is not None and predicate(*args):
            raise ConnectionError(f"{operation} failed")

    async def list_active_contracts_with_members(self) -> list[ActiveGroup]:
        self._maybe_fail("list_active_contracts_with_members")
        return list(self.groups)

    async def sum_points(self, user_id, week_start, week_end) -> int:
        self._maybe_fail("sum_points", user_id)
        return sum(
            points
            for when, points in self.points.get(user_id, [])
            if week_start <= when <= week_end
        )

    async def notification_exists(self, user_id, group_id, notification_type, week_start_date):
        self._maybe_fail("notification_exists", user_id)
        return any(
            n["user_id"] == user_id
            and n["group_id"] == group_id
            and n["notification_type"] == notification_type
            and n["week_start_date"] == week_start_date
            for n in self.notifications
        )

    async def get_weekly_summary(self, group_id, week_start, week_end) -> WeeklySummary:
        self._maybe_fail("get_weekly_summary", group_id)
        summary = WeeklySummary(
            group_id=group_id, week_start=week_start.date(), week_end=week_end.date()
        )
        for (user_id, penalty_group, week), penalty in self.penalties.items():
            if penalty_group == group_id and week == summary.week_start:
                summary.penalties.append(
                    PenaltySummary(
                        user_id=user_id,
                        user_name=str(user_id),
                        points_earned=penalty["points_earned"],
                        point_threshold=penalty["threshold"],
                        penalty_message=penalty["message"],
                    )
                )
        return summary

    async def upsert_penalty(
        self, user_id, group_id, week_start, week_end, points_earned, threshold, message
    ) -> None:
        self._maybe_fail("upsert_penalty", user_id)
        self.penalties[(user_id, group_id, week_start)] = {
            "week_end": week_end,
            "points_earned": points_earned,
            "threshold": threshold,
            "message": message,
        }

    async def insert_notification(
        self, user_id, group_id, title, message, notification_type, week_start_date=None
    ) -> None:
        self._maybe_fail("insert_notification", user_id)
        self.notifications.append({
            "user_id": user_id,
            "group_id": group_id,
            "title": title,
            "message": message,
            "notification_type": notification_type,
            "week_start_date": week_start_date,
        })

    async def archive_weekly_points(self, group_id, week_start, week_end) -> int:
        self._maybe_fail("archive_weekly_points", group_id)
        self.archived.append((group_id, week_start, week_end))
        group = next(g for g in self.groups if g.group_id == group_id)
        return sum(
            1
            for member in group.members
            for when, _ in self.points.get(member.user_id, [])
            if week_start <= when <= week_end
        )


# ==================== FIXTURES ====================


@pytest.fixture
def week_window() -> WeekWindow:
    """Semana del domingo 2024-01-07 al sábado 2024-01-13."""
    return get_week_window(datetime(2024, 1, 10, 15, 30))


@pytest.fixture
def alice() -> GroupMemberRef:
    return GroupMemberRef(user_id=uuid.uuid4(), name="Alice")


@pytest.fixture
def bob() -> GroupMemberRef:
    return GroupMemberRef(user_id=uuid.uuid4(), name="Bob")


@pytest.fixture
def lifters(alice, bob) -> ActiveGroup:
    """Grupo activo con Alice y Bob."""
    return ActiveGroup(
        contract_id=uuid.uuid4(),
        group_id=uuid.uuid4(),
        group_name="Lifters",
        members=[alice, bob],
    )


@pytest.fixture
def fake_repo(lifters) -> FakeSettlementRepository:
    return FakeSettlementRepository(groups=[lifters])


@pytest.fixture
def fixed_messages() -> FixedMessageProvider:
    return FixedMessageProvider()
