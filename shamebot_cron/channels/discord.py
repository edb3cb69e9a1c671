"""Discord channel implementation"""
import asyncio
from typing import Optional

from loguru import logger

from .base import Channel, ChannelType

logger = logger.bind(module="channels.discord")

# Discord caps messages at 2000 characters
MESSAGE_LIMIT = 1900

# Discord SDK is imported lazily
discord = None


def _ensure_discord_sdk():
    """Make sure the Discord SDK is imported"""
    global discord
    if discord is None:
        try:
            import discord as _discord
            discord = _discord
        except ImportError:
            raise ImportError(
                "Discord SDK not installed, run: pip install 'shamebot-cron[discord]'"
            )


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split text into chunks Discord accepts, preferring line breaks."""
    chunks = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    chunks.append(text)
    return chunks


class DiscordChannel(Channel):
    """Outbound Discord channel.

    Logs in as a bot and posts to guild text channels by id. The gateway
    connection runs in a background task for the life of the channel.
    """

    def __init__(
        self,
        bot_token: Optional[str] = None,
        connect_timeout: float = 30.0,
    ):
        super().__init__()
        self.bot_token = bot_token
        self.connect_timeout = connect_timeout
        self._client = None
        self._gateway: Optional[asyncio.Task] = None
        self._ready = asyncio.Event()

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.DISCORD

    async def connect(self) -> bool:
        """Log in and wait until the gateway reports ready."""
        if not self.bot_token:
            logger.warning("Missing Discord bot token, skipped")
            return False

        try:
            _ensure_discord_sdk()
        except ImportError as e:
            logger.error(str(e))
            return False

        # Sending needs no privileged intents
        self._client = discord.Client(intents=discord.Intents.none())

        @self._client.event
        async def on_ready():
            self._ready.set()

        self._gateway = asyncio.create_task(self._run_gateway())

        try:
            await asyncio.wait_for(self._ready.wait(), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Discord not ready after {self.connect_timeout:g}s")
            await self.disconnect()
            return False

        self._connected = True
        logger.info(f"Discord connected as {self._client.user}")
        return True

    async def _run_gateway(self):
        try:
            await self._client.start(self.bot_token)
        except Exception as e:
            logger.error(f"Discord gateway stopped: {e}")
        finally:
            self._connected = False

    async def disconnect(self):
        """Close the gateway connection."""
        if self._client is not None and not self._client.is_closed():
            await self._client.close()
        if self._gateway is not None:
            await asyncio.gather(self._gateway, return_exceptions=True)
        self._connected = False
        logger.info("Discord disconnected")

    async def send(self, channel_id: str, content: str, **kwargs) -> bool:
        """Post `content` to the text channel `channel_id`."""
        if not self._connected:
            logger.warning("Discord not connected, message dropped")
            return False

        try:
            target = await self._resolve(int(channel_id))
            for chunk in split_message(content):
                await target.send(chunk)
        except (ValueError, discord.DiscordException) as e:
            logger.error(f"Discord send to {channel_id} failed: {e}")
            return False
        return True

    async def _resolve(self, channel_id: int):
        # Cached after the READY event; fetched over HTTP otherwise
        channel = self._client.get_channel(channel_id)
        if channel is None:
            channel = await self._client.fetch_channel(channel_id)
        return channel
