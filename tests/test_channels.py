"""Tests for the outbound chat channels."""
import pytest

from shamebot_cron.channels import ConsoleChannel, DiscordChannel
from shamebot_cron.channels.discord import split_message


class TestSplitMessage:

    def test_short_message_is_one_chunk(self):
        assert split_message("hello") == ["hello"]

    def test_prefers_line_breaks(self):
        text = "a" * 8 + "\n" + "b" * 8
        assert split_message(text, limit=10) == ["a" * 8, "b" * 8]

    def test_hard_cut_without_line_breaks(self):
        chunks = split_message("x" * 25, limit=10)

        assert chunks == ["x" * 10, "x" * 10, "x" * 5]


class TestChannels:

    @pytest.mark.asyncio
    async def test_console_channel(self):
        channel = ConsoleChannel()

        assert await channel.connect() is True
        assert channel.is_connected
        assert await channel.send("console", "hi") is True

        await channel.disconnect()
        assert not channel.is_connected

    @pytest.mark.asyncio
    async def test_discord_without_token(self):
        channel = DiscordChannel(bot_token=None)

        assert await channel.connect() is False
        assert await channel.send("1234", "hi") is False
