"""
Notifications
=============

Desktop notification delivery for the GLPI notifier.
"""

from .adapters.base_notification_adapter import BaseNotificationAdapter
from .adapters.snoretoast_adapter import SnoreToastAdapter, find_snoretoast, resolve_image_path
from .models.notification import DeliveryOutcome, Notification

__all__ = [
    "BaseNotificationAdapter",
    "SnoreToastAdapter",
    "find_snoretoast",
    "resolve_image_path",
    "DeliveryOutcome",
    "Notification",
]
