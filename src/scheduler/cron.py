"""Cron expression validation and next-run calculation.

All returned instants are timezone-aware UTC datetimes. When a timezone is
supplied, the cron fields are matched against wall-clock time in that zone
and the result is converted back to UTC.
"""

from datetime import UTC, datetime, tzinfo

from croniter import CroniterBadCronError, CroniterBadDateError, CroniterError, croniter

from src.scheduler.exceptions import InvalidCronExpressionError, NoNextRunTimeError

# minute hour day-of-month month day-of-week
CRON_FIELD_COUNT = 5


def validate_cron(cron_expr: str) -> bool:
    """Check whether a cron expression is a valid 5-field expression.

    Supports the croniter extensions used in rule configs, such as ``L``
    for the last day of the month and ``@daily`` style macros. Second and
    year fields are not accepted.

    :param cron_expr: The cron expression to check.
    :returns: True if the expression can be evaluated.
    """
    expr = cron_expr.strip()
    if not expr:
        return False
    if not expr.startswith("@") and len(expr.split()) != CRON_FIELD_COUNT:
        return False
    return bool(croniter.is_valid(expr))


def next_run_after(cron_expr: str, after: datetime, timezone: tzinfo | None = None) -> datetime:
    """Calculate the first occurrence of a cron expression strictly after a time.

    :param cron_expr: Standard cron expression (5 fields).
    :param after: Reference instant. Must be timezone-aware.
    :param timezone: Zone in which the cron fields are evaluated. Defaults to UTC.
    :returns: Next occurrence as a UTC datetime.
    :raises ValueError: If ``after`` is naive.
    :raises InvalidCronExpressionError: If the expression is malformed.
    :raises NoNextRunTimeError: If no occurrence exists.
    """
    if after.tzinfo is None:
        raise ValueError("Reference time must be timezone-aware")

    if not validate_cron(cron_expr):
        raise InvalidCronExpressionError(cron_expr)

    base = after.astimezone(timezone or UTC)

    try:
        cron = croniter(cron_expr.strip(), base)
        next_time = cron.get_next(datetime)
        # croniter works at second resolution; skip any match not strictly later
        while next_time is not None and next_time <= base:
            next_time = cron.get_next(datetime)
    except CroniterBadDateError as e:
        raise NoNextRunTimeError(cron_expr) from e
    except CroniterBadCronError as e:
        raise InvalidCronExpressionError(cron_expr, str(e)) from e
    except CroniterError as e:
        raise NoNextRunTimeError(cron_expr) from e

    if next_time is None:
        raise NoNextRunTimeError(cron_expr)

    if next_time.tzinfo is None:
        next_time = next_time.replace(tzinfo=timezone or UTC)

    return next_time.astimezone(UTC)
