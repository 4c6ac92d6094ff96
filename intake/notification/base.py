from abc import ABC, abstractmethod

from intake.notification.models import NotificationPayload


class BaseNotifier(ABC):
    """Contract for downstream notification transports."""

    @abstractmethod
    def notify(self, payload: NotificationPayload) -> None:
        """Deliver the payload at most once.

        Transport failures are logged by the implementation and never raised.
        """

    def close(self) -> None:
        """Release transport resources."""
