"""Abstract base class for notifiers.

A notifier delivers an accepted booking to the people who act on it. Any
transport (Resend, SMTP, a chat webhook...) implements this ABC.
"""

from abc import ABC, abstractmethod

from concierge.models.booking import Notification


class Notifier(ABC):
    """Abstract message transport."""

    @abstractmethod
    async def send(self, notification: Notification) -> str:
        """Deliver one notification.

        Args:
            notification: Sender, recipients, subject and bodies.

        Returns:
            The transport's message identifier.

        Raises:
            NotifierError: if the message was not accepted for delivery.
        """

    async def close(self) -> None:
        """Release transport resources. Safe to call multiple times."""
