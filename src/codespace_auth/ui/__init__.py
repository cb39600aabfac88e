"""Presentation helpers for the auth screen: notifications and navigation."""

from .notifications import Notification, NotificationChannel, NotificationVariant
from .navigation import Navigator

__all__ = ["Notification", "NotificationChannel", "NotificationVariant", "Navigator"]
