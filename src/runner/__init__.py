"""Evaluation pass orchestration and process entry points."""

from src.runner.handler import (
    ReminderHandler,
    ReminderProcessingError,
    ReminderStats,
    build_handler,
    lambda_handler,
)

__all__ = [
    "ReminderHandler",
    "ReminderProcessingError",
    "ReminderStats",
    "build_handler",
    "lambda_handler",
]
