from .base_notification_adapter import BaseNotificationAdapter
from .snoretoast_adapter import SnoreToastAdapter

__all__ = ['BaseNotificationAdapter', 'SnoreToastAdapter']
