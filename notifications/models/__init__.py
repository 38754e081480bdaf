from .notification import DeliveryOutcome, Notification

__all__ = ["DeliveryOutcome", "Notification"]
