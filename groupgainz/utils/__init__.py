"""Utilidades de GroupGainz."""

from groupgainz.utils.errors import (
    GroupGainzError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    describe_error,
    log_error,
    retry_database,
)

from groupgainz.utils.schedule_helpers import (
    WeekWindow,
    get_week_window,
    get_week_window_for_date,
    server_now,
    to_server_time,
)

__all__ = [
    # Errors
    "GroupGainzError",
    "DatabaseError",
    "ErrorCategory",
    "ErrorContext",
    "describe_error",
    "log_error",
    "retry_database",
    # Schedule
    "WeekWindow",
    "get_week_window",
    "get_week_window_for_date",
    "server_now",
    "to_server_time",
]
