"""Channel abstract base class"""
from abc import ABC, abstractmethod
from enum import Enum

from loguru import logger

logger = logger.bind(module="channels")


class ChannelType(Enum):
    """Channel type"""
    DISCORD = "discord"
    CONSOLE = "console"


class Channel(ABC):
    """Outbound chat channel.

    Implementations are not safe for concurrent use; callers sharing one
    channel must serialize access.
    """

    def __init__(self):
        self._connected = False

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Channel type"""
        pass

    @property
    def is_connected(self) -> bool:
        """Whether the channel is connected"""
        return self._connected

    @abstractmethod
    async def connect(self) -> bool:
        """Open the connection

        Returns:
            True if the connection succeeded
        """
        pass

    @abstractmethod
    async def disconnect(self):
        """Close the connection"""
        pass

    @abstractmethod
    async def send(self, channel_id: str, content: str, **kwargs) -> bool:
        """Send a message

        Args:
            channel_id: Target conversation ID
            content: Message content
            **kwargs: Extra parameters

        Returns:
            True if the message was sent
        """
        pass


class ConsoleChannel(Channel):
    """Channel that writes messages to the log, used when no chat token is set."""

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.CONSOLE

    async def connect(self) -> bool:
        self._connected = True
        return True

    async def disconnect(self):
        self._connected = False

    async def send(self, channel_id: str, content: str, **kwargs) -> bool:
        logger.info(f"[{channel_id}] {content}")
        return True
