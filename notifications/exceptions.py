from typing import Optional


class NotificationError(Exception):
    """Base exception for notification delivery errors."""
    pass


class DeliveryError(NotificationError):
    """Raised when the notifier process reports an unrecognized result or cannot complete."""

    def __init__(self, message: str, exit_code: Optional[int] = None, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class NotifierNotAvailableError(DeliveryError):
    """Raised when the notifier executable cannot be found or launched."""
    pass
