"""Tests for settings and the service entry point helpers."""
from pathlib import Path

import pytest

from shamebot_cron.channels import ConsoleChannel
from shamebot_cron.config import Settings
from shamebot_cron.main import build_channel, service_healthy, wait_for_store
from shamebot_cron.scheduler.service import SqliteTaskStore, TriggerScheduler

from .fakes import RecordingNotifier


class TestSettings:

    def test_defaults(self):
        settings = Settings(data_dir=Path("/tmp/shame"))

        assert settings.db_path == Path("/tmp/shame/shamebot.db")
        assert settings.pester_unit_seconds == 3600
        assert settings.notify_timeout_seconds == 10.0

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHAMEBOT_DATA_DIR", str(tmp_path))
        monkeypatch.delenv("SHAMEBOT_DB_PATH", raising=False)
        monkeypatch.setenv("SHAMEBOT_PESTER_UNIT_SECONDS", "60")
        monkeypatch.setenv("SHAMEBOT_NOTIFY_TIMEOUT", "2.5")
        monkeypatch.setenv("SHAMEBOT_DISCORD_CHANNEL", "1234")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.db_path == tmp_path / "shamebot.db"
        assert settings.pester_unit_seconds == 60
        assert settings.notify_timeout_seconds == 2.5
        assert settings.discord_channel_id == "1234"
        assert settings.log_level == "DEBUG"

    def test_explicit_db_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHAMEBOT_DB_PATH", str(tmp_path / "other.db"))

        assert Settings.from_env().db_path == tmp_path / "other.db"


class TestEntryPoint:

    def test_console_fallback_without_discord(self, tmp_path):
        settings = Settings(data_dir=tmp_path, discord_bot_token=None)

        channel, channel_id = build_channel(settings)

        assert isinstance(channel, ConsoleChannel)
        assert channel_id == "console"

    @pytest.mark.asyncio
    async def test_wait_for_store(self, tmp_path):
        store = SqliteTaskStore(tmp_path / "nested" / "shamebot.db")

        await wait_for_store(store, retry_seconds=0.01)

        assert await store.healthy()
        await store.close()

    @pytest.mark.asyncio
    async def test_service_health(self, store):
        core = TriggerScheduler(store, RecordingNotifier())
        assert await service_healthy(core, store) is False

        core.start()
        assert await service_healthy(core, store) is True

        await store.close()
        assert await service_healthy(core, store) is False
        core.shutdown()
