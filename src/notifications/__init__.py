"""Notification dispatch for due reminder rules."""

from src.notifications.sender import (
    DispatchResult,
    NotificationError,
    NotificationSender,
)

__all__ = [
    "DispatchResult",
    "NotificationError",
    "NotificationSender",
]
