from abc import ABC, abstractmethod

from ..models.notification import DeliveryOutcome, Notification


class BaseNotificationAdapter(ABC):
    """Abstract base class for desktop notification mechanisms."""

    @abstractmethod
    def deliver(self, notification: Notification) -> DeliveryOutcome:
        """
        Show a notification and block until it reaches a terminal outcome.

        Raises:
            DeliveryError: If the mechanism fails or reports an unknown result.
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the notification mechanism can be used on this machine."""
        pass
