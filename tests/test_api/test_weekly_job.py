"""Tests for the weekly job HTTP trigger."""

import uuid
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from groupgainz.domain.entities.settlement import (
    ErrorScope,
    PenaltySummary,
    RunState,
    SettlementError,
    SettlementResult,
    SettlementStats,
    WeeklySummary,
)


@pytest.fixture
def test_client():
    """Create a test client for the FastAPI app."""
    from groupgainz.main import app
    return TestClient(app)


def clean_result() -> SettlementResult:
    return SettlementResult(
        state=RunState.COMPLETED_CLEAN,
        message="Weekly job completed successfully",
        stats=SettlementStats(
            groups_processed=2, penalties_assigned=1, notifications_sent=1, points_archived=9
        ),
    )


class TestWeeklyJobEndpoint:
    """Test suite for /weekly-job."""

    def test_preflight_returns_ok(self, test_client):
        response = test_client.options("/weekly-job")

        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["access-control-allow-origin"] == "*"
        assert "content-type" in response.headers["access-control-allow-headers"]

    @pytest.mark.parametrize("method", ["get", "post", "put", "patch", "delete"])
    def test_any_method_runs_the_job(self, test_client, method):
        with patch(
            "groupgainz.api.weekly_job.run_weekly_settlement",
            new=AsyncMock(return_value=clean_result()),
        ) as mock_run:
            response = getattr(test_client, method)("/weekly-job")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Weekly job completed successfully",
            "stats": {
                "groupsProcessed": 2,
                "penaltiesAssigned": 1,
                "notificationsSent": 1,
                "pointsArchived": 9,
            },
            "errors": [],
        }
        assert response.headers["access-control-allow-origin"] == "*"
        mock_run.assert_awaited_once_with(window=None)

    def test_partial_failure_is_still_200(self, test_client):
        result = clean_result()
        result.state = RunState.COMPLETED_WITH_ERRORS
        result.message = "Weekly job completed with 1 errors"
        result.errors = [
            SettlementError(
                scope=ErrorScope.MEMBER,
                message="Failed to create penalty for user Bob in group Lifters",
            )
        ]

        with patch(
            "groupgainz.api.weekly_job.run_weekly_settlement",
            new=AsyncMock(return_value=result),
        ):
            response = test_client.post("/weekly-job")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["errors"] == ["Failed to create penalty for user Bob in group Lifters"]

    def test_fatal_failure_is_500(self, test_client):
        result = SettlementResult(
            state=RunState.FAILED_FATAL,
            message="Weekly job failed",
            errors=[
                SettlementError(
                    scope=ErrorScope.RUN,
                    message="Failed to fetch active groups: connection refused",
                )
            ],
        )

        with patch(
            "groupgainz.api.weekly_job.run_weekly_settlement",
            new=AsyncMock(return_value=result),
        ):
            response = test_client.post("/weekly-job")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Weekly job failed"
        assert body["stats"]["groupsProcessed"] == 0
        assert body["errors"] == ["Failed to fetch active groups: connection refused"]

    def test_reference_date_selects_week(self, test_client):
        with patch(
            "groupgainz.api.weekly_job.run_weekly_settlement",
            new=AsyncMock(return_value=clean_result()),
        ) as mock_run:
            response = test_client.post("/weekly-job", params={"reference_date": "2024-01-10"})

        assert response.status_code == 200
        window = mock_run.await_args.kwargs["window"]
        assert window.start_date == date(2024, 1, 7)
        assert window.end_date == date(2024, 1, 13)


class TestWeeklySummaryEndpoint:
    """Test suite for /weekly-job/summary/{group_id}."""

    def test_summary(self, test_client):
        group_id = uuid.uuid4()
        user_id = uuid.uuid4()
        summary = WeeklySummary(
            group_id=group_id,
            week_start=date(2024, 1, 7),
            week_end=date(2024, 1, 13),
            total_members=2,
            average_points=20,
            penalties=[
                PenaltySummary(
                    user_id=user_id,
                    user_name="Bob",
                    points_earned=5,
                    point_threshold=20,
                    penalty_message="Do better",
                )
            ],
        )

        with patch(
            "groupgainz.api.weekly_job.load_weekly_summary",
            new=AsyncMock(return_value=summary),
        ):
            response = test_client.get(
                f"/weekly-job/summary/{group_id}", params={"reference_date": "2024-01-10"}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["groupId"] == str(group_id)
        assert body["membersWithPenalties"] == 1
        assert body["averagePoints"] == 20
        assert body["penalties"][0]["userName"] == "Bob"

    def test_summary_failure_is_500(self, test_client):
        with patch(
            "groupgainz.api.weekly_job.load_weekly_summary",
            new=AsyncMock(side_effect=ConnectionError("db down")),
        ):
            response = test_client.get(f"/weekly-job/summary/{uuid.uuid4()}")

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to load weekly summary"}

    def test_invalid_group_id(self, test_client):
        response = test_client.get("/weekly-job/summary/not-a-uuid")

        assert response.status_code == 422


class TestHealth:
    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
