"""Channel module"""
from .base import Channel, ChannelType, ConsoleChannel
from .discord import DiscordChannel

__all__ = [
    "Channel",
    "ChannelType",
    "ConsoleChannel",
    "DiscordChannel",
]
