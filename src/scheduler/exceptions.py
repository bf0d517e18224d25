"""Custom exceptions for cron evaluation."""


class CronError(Exception):
    """Base exception for cron evaluation errors."""


class InvalidCronExpressionError(CronError):
    """Raised when a cron expression cannot be parsed."""

    def __init__(self, cron_expr: str, reason: str | None = None) -> None:
        """Initialise InvalidCronExpressionError.

        :param cron_expr: The offending cron expression.
        :param reason: Optional detail from the parser.
        """
        self.cron_expr = cron_expr
        message = f"Invalid cron expression: {cron_expr!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NoNextRunTimeError(CronError):
    """Raised when a valid cron expression has no upcoming occurrence."""

    def __init__(self, cron_expr: str) -> None:
        """Initialise NoNextRunTimeError.

        :param cron_expr: The cron expression that yielded no occurrence.
        """
        self.cron_expr = cron_expr
        super().__init__(f"No next run time found for cron: {cron_expr!r}")
