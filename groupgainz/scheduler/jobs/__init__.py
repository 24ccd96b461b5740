"""Jobs del scheduler."""

from groupgainz.scheduler.jobs.weekly_settlement import (
    request_cancellation,
    reset_cancellation,
    load_weekly_summary,
    run_weekly_settlement,
    weekly_settlement_job,
)

__all__ = [
    "request_cancellation",
    "reset_cancellation",
    "load_weekly_summary",
    "run_weekly_settlement",
    "weekly_settlement_job",
]
