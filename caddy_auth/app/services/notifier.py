from abc import ABC, abstractmethod


class NotifierError(Exception):
    """Outbound message could not be handed to the delivery service"""


class INotifier(ABC):
    """Outbound email capability - application layer"""

    @abstractmethod
    async def send(self, to: str, subject: str, body: str) -> None:
        """Send a plain-text message; raises NotifierError on failure"""
        pass
