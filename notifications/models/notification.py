from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class DeliveryOutcome(IntEnum):
    """Terminal results reported by the notifier through its exit code."""
    SUCCESS = 0
    HIDDEN = 1
    DISMISSED = 2
    TIMED_OUT = 3
    BUTTON_PRESSED = 4
    TEXT_ENTERED = 5

    @classmethod
    def from_exit_code(cls, code: Optional[int]) -> Optional["DeliveryOutcome"]:
        """Returns the outcome for a recognized exit code, None otherwise."""
        if code is None:
            return None
        try:
            return cls(code)
        except ValueError:
            return None


@dataclass(frozen=True)
class Notification:
    """One desktop notification request."""
    app_id: str
    notification_id: str
    title: str
    body: str
    duration: str = "short"
    image_path: Optional[str] = None
    button_label: Optional[str] = None
    open_url: Optional[str] = None
