"""Lifecycle notifications (email, Slack) with a retryable delivery log."""

from orderflow.notifications.hooks import notification_types_for, notify_transition
from orderflow.notifications.retry import list_failed_notifications, retry_notification

__all__ = [
    "list_failed_notifications",
    "notification_types_for",
    "notify_transition",
    "retry_notification",
]
