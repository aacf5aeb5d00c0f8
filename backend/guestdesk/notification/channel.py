"""
Notification channels

Concrete channels (push, email, SMS...) implement INotificationChannel and are
registered at startup; LogChannel is the default and only writes to the log.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class INotificationChannel(ABC):
    """Notification channel interface"""

    @abstractmethod
    def send(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> bool:
        """Send a notification

        Args:
            recipient: recipient identifier (user id, email... channel specific)
            subject: notification title
            content: notification body
            extra: channel specific parameters

        Returns:
            whether the notification was accepted
        """

    @abstractmethod
    def get_channel_type(self) -> str:
        """Channel type identifier, e.g. 'log', 'email', 'push'"""


class NotificationChannelRegistry:
    """Notification channel registry (singleton)

    Channels are registered in the app lifespan:
        registry = NotificationChannelRegistry()
        registry.register(LogChannel())
    """

    _instance: Optional["NotificationChannelRegistry"] = None

    def __new__(cls) -> "NotificationChannelRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._channels = {}
        return cls._instance

    def register(self, channel: INotificationChannel) -> None:
        self._channels[channel.get_channel_type()] = channel

    def get_all_channels(self) -> List[INotificationChannel]:
        return list(self._channels.values())

    def clear(self) -> None:
        self._channels.clear()

    def broadcast(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> int:
        """Send through every registered channel

        Returns:
            number of channels that accepted the notification
        """
        delivered = 0
        for channel in self.get_all_channels():
            try:
                if channel.send(recipient, subject, content, extra):
                    delivered += 1
            except Exception as e:
                logger.error(
                    f"Notification channel {channel.get_channel_type()} failed for {recipient}: {e}"
                )
        return delivered


class LogChannel(INotificationChannel):
    """Writes notifications to the application log"""

    def send(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> bool:
        logger.info(f"[notify {recipient}] {subject}: {content}")
        return True

    def get_channel_type(self) -> str:
        return "log"
