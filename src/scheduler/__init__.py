"""Cron evaluation and due-rule scheduling."""

from src.scheduler.cron import next_run_after, validate_cron
from src.scheduler.exceptions import CronError, InvalidCronExpressionError, NoNextRunTimeError
from src.scheduler.scheduler import DueRulesResult, Scheduler

__all__ = [
    "CronError",
    "DueRulesResult",
    "InvalidCronExpressionError",
    "NoNextRunTimeError",
    "Scheduler",
    "next_run_after",
    "validate_cron",
]
