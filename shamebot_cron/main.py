"""Process entry point for the trigger scheduler service.

Startup order: store healthy -> channel connected -> scheduler started ->
stale triggers reconciled -> ready. Runs until SIGINT/SIGTERM.
"""
import asyncio
import contextlib
import signal

from loguru import logger

from .channels import Channel, ConsoleChannel, DiscordChannel
from .config import Settings
from .logging_setup import configure_logging
from .scheduler.errors import StoreError
from .scheduler.notifier import ChannelNotifier
from .scheduler.service import SqliteTaskStore, TriggerScheduler, reconcile

logger = logger.bind(module="main")


async def wait_for_store(store: SqliteTaskStore, retry_seconds: float) -> None:
    """Block until the store opens and reports healthy."""
    while True:
        try:
            await store.initialize()
            if await store.healthy():
                return
        except StoreError as e:
            logger.error(str(e))
        await store.close()
        logger.warning(f"Store not healthy, retrying in {retry_seconds:g}s...")
        await asyncio.sleep(retry_seconds)


async def service_healthy(scheduler: TriggerScheduler, store: SqliteTaskStore) -> bool:
    """Liveness: scheduler dispatch loop and storage are both healthy."""
    return scheduler.healthy() and await store.healthy()


def build_channel(settings: Settings) -> tuple[Channel, str]:
    """Discord when a token and channel are configured, the log otherwise."""
    if settings.discord_bot_token and settings.discord_channel_id:
        return DiscordChannel(bot_token=settings.discord_bot_token), settings.discord_channel_id
    logger.warning("Discord not configured, notifications go to the log")
    return ConsoleChannel(), "console"


async def run(settings: Settings) -> None:
    store = SqliteTaskStore(settings.db_path)
    await wait_for_store(store, settings.db_retry_seconds)

    channel, channel_id = build_channel(settings)
    if not await channel.connect():
        logger.warning(f"Channel {channel.channel_type.value} failed to connect, sends will fail")

    notifier = ChannelNotifier(
        channel,
        store,
        channel_id,
        timeout_seconds=settings.notify_timeout_seconds,
    )
    scheduler = TriggerScheduler(
        store,
        notifier,
        pester_unit_seconds=settings.pester_unit_seconds,
        misfire_grace_seconds=settings.misfire_grace_seconds,
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    scheduler.start()
    try:
        try:
            await reconcile(scheduler, store)
        except StoreError as e:
            logger.error(f"Could not resume stored triggers: {e}")
        logger.info(f"Service ready: {scheduler.status().to_dict()}")
        await stop.wait()
    finally:
        logger.info("Shutting down")
        scheduler.shutdown()
        await channel.disconnect()
        await store.close()


def main() -> None:
    settings = Settings.from_env()
    configure_logging("DEBUG" if settings.debug else settings.log_level)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
