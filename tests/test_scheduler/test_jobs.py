"""Tests for the weekly settlement job and scheduler setup."""

import logging
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from groupgainz.config import get_settings
from groupgainz.domain.entities.settlement import (
    ErrorScope,
    RunState,
    SettlementError,
    SettlementResult,
)


class TestRunWeeklySettlement:
    """Test suite for run_weekly_settlement."""

    @pytest.mark.asyncio
    async def test_session_failure_is_fatal(self):
        with patch("groupgainz.scheduler.jobs.weekly_settlement.get_session") as mock_session:
            mock_session.return_value.__aenter__ = AsyncMock(
                side_effect=ConnectionError("connection refused")
            )
            mock_session.return_value.__aexit__ = AsyncMock(return_value=False)

            from groupgainz.scheduler.jobs.weekly_settlement import run_weekly_settlement

            result = await run_weekly_settlement()

        assert result.state == RunState.FAILED_FATAL
        assert result.message == "Weekly job failed"
        assert [str(e) for e in result.errors] == [
            "Failed to fetch active groups: connection refused"
        ]

    @pytest.mark.asyncio
    async def test_runs_service_with_cancel_event(self):
        with patch("groupgainz.scheduler.jobs.weekly_settlement.get_session") as mock_session:
            with patch(
                "groupgainz.scheduler.jobs.weekly_settlement.SettlementService"
            ) as mock_service:
                session = MagicMock()
                mock_session.return_value.__aenter__ = AsyncMock(return_value=session)
                mock_session.return_value.__aexit__ = AsyncMock(return_value=False)
                expected = SettlementResult(state=RunState.COMPLETED_CLEAN, message="ok")
                mock_service.return_value.run = AsyncMock(return_value=expected)

                from groupgainz.scheduler.jobs import weekly_settlement

                result = await weekly_settlement.run_weekly_settlement()

                assert result is expected
                kwargs = mock_service.return_value.run.await_args.kwargs
                assert kwargs["cancel_event"] is weekly_settlement._cancel_event


class TestWeeklySettlementJob:
    """Test suite for the scheduled job entry point."""

    @pytest.mark.asyncio
    async def test_logs_errors_when_partial(self, caplog):
        result = SettlementResult(
            state=RunState.COMPLETED_WITH_ERRORS,
            message="Weekly job completed with 1 errors",
            errors=[
                SettlementError(
                    scope=ErrorScope.GROUP, message="Failed to archive points for group Lifters"
                )
            ],
        )
        with patch(
            "groupgainz.scheduler.jobs.weekly_settlement.run_weekly_settlement",
            new=AsyncMock(return_value=result),
        ):
            from groupgainz.scheduler.jobs.weekly_settlement import weekly_settlement_job

            with caplog.at_level(logging.WARNING):
                await weekly_settlement_job()

        assert "Failed to archive points for group Lifters" in caplog.text

    @pytest.mark.asyncio
    async def test_logs_fatal_failure(self, caplog):
        result = SettlementResult(
            state=RunState.FAILED_FATAL,
            message="Weekly job failed",
            errors=[SettlementError(scope=ErrorScope.RUN, message="Failed to fetch active groups: boom")],
        )
        with patch(
            "groupgainz.scheduler.jobs.weekly_settlement.run_weekly_settlement",
            new=AsyncMock(return_value=result),
        ):
            from groupgainz.scheduler.jobs.weekly_settlement import weekly_settlement_job

            with caplog.at_level(logging.ERROR):
                await weekly_settlement_job()

        assert "Failed to fetch active groups: boom" in caplog.text


class TestCancellation:
    def test_request_and_reset(self):
        from groupgainz.scheduler.jobs import weekly_settlement

        weekly_settlement.request_cancellation()
        assert weekly_settlement._cancel_event.is_set()

        weekly_settlement.reset_cancellation()
        assert not weekly_settlement._cancel_event.is_set()


class TestSchedulerSetup:
    """Test suite for scheduler registration."""

    @pytest.mark.asyncio
    async def test_weekly_job_is_registered(self):
        with patch("groupgainz.scheduler.setup.get_scheduler") as mock_get:
            scheduler = MagicMock()
            scheduler.running = True
            mock_get.return_value = scheduler

            from groupgainz.scheduler.setup import WEEKLY_SETTLEMENT_JOB_ID, setup_scheduler

            await setup_scheduler()

        scheduler.add_job.assert_called_once()
        kwargs = scheduler.add_job.call_args.kwargs
        assert kwargs["id"] == WEEKLY_SETTLEMENT_JOB_ID
        assert kwargs["replace_existing"] is True
        trigger = scheduler.add_job.call_args.args[1]
        assert "day_of_week='sat'" in str(trigger)
        assert "hour='23'" in str(trigger)
        assert "minute='30'" in str(trigger)
        scheduler.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_shutdown_requests_cancellation(self):
        with patch("groupgainz.scheduler.setup.get_scheduler") as mock_get:
            scheduler = MagicMock()
            scheduler.running = True
            mock_get.return_value = scheduler

            from groupgainz.scheduler.jobs import weekly_settlement
            from groupgainz.scheduler.setup import shutdown_scheduler

            await shutdown_scheduler()

            assert weekly_settlement._cancel_event.is_set()
            scheduler.shutdown.assert_called_once_with(wait=False)
            weekly_settlement.reset_cancellation()


def server_time(*args) -> datetime:
    return datetime(*args, tzinfo=ZoneInfo(get_settings().tz))


class TestScheduledWeek:
    """Test suite for picking the week a scheduled run settles."""

    @pytest.mark.parametrize(
        "fired_at",
        [
            server_time(2024, 1, 13, 23, 30),
            server_time(2024, 1, 13, 23, 58),
            server_time(2024, 1, 14, 0, 10),
        ],
    )
    @pytest.mark.asyncio
    async def test_settles_week_of_scheduled_saturday(self, fired_at):
        clean = SettlementResult(state=RunState.COMPLETED_CLEAN, message="ok")
        with patch(
            "groupgainz.scheduler.jobs.weekly_settlement.run_weekly_settlement",
            new=AsyncMock(return_value=clean),
        ) as mock_run:
            from groupgainz.scheduler.jobs.weekly_settlement import weekly_settlement_job

            await weekly_settlement_job(now=fired_at)

        window = mock_run.await_args.kwargs["window"]
        assert window.start_date == date(2024, 1, 7)
        assert window.end_date == date(2024, 1, 13)

    def test_late_fire_maps_back_to_saturday(self):
        from groupgainz.scheduler.setup import get_scheduled_fire_time

        fire_time = get_scheduled_fire_time(server_time(2024, 1, 14, 0, 10))

        assert fire_time.replace(tzinfo=None) == datetime(2024, 1, 13, 23, 30)

    def test_off_schedule_keeps_now(self):
        from groupgainz.scheduler.setup import get_scheduled_fire_time

        now = server_time(2024, 1, 10, 12, 0)

        assert get_scheduled_fire_time(now) == now


class TestLifespanCancellation:
    @pytest.mark.asyncio
    async def test_startup_clears_previous_cancellation(self):
        from groupgainz.main import app, lifespan
        from groupgainz.scheduler.jobs import weekly_settlement

        weekly_settlement.request_cancellation()

        with patch("groupgainz.db.database.init_db", new=AsyncMock()):
            with patch("groupgainz.db.database.close_db", new=AsyncMock()):
                with patch("groupgainz.scheduler.setup.shutdown_scheduler", new=AsyncMock()):
                    async with lifespan(app):
                        assert not weekly_settlement._cancel_event.is_set()
