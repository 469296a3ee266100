"""Notification fan-out to the WebSocket relay."""

from .notifier import (
    GameNotifier,
    NotificationError,
    NotificationType,
    close_notifier,
    get_notifier,
)

__all__ = [
    "GameNotifier",
    "NotificationError",
    "NotificationType",
    "close_notifier",
    "get_notifier",
]
