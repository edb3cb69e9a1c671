"""Configuration for the trigger scheduler service"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
load_dotenv(override=True)


def _default_data_dir() -> Path:
    return Path.home() / ".shamebot" / "data"


@dataclass
class Settings:
    """Service settings"""

    debug: bool = False
    log_level: str = "INFO"

    # Storage
    data_dir: Path = field(default_factory=_default_data_dir)
    db_path: Optional[Path] = None
    # Seconds between store health checks while waiting at startup
    db_retry_seconds: float = 5.0

    # Scheduling
    # Length of one pester interval unit, in seconds
    pester_unit_seconds: int = 3600
    misfire_grace_seconds: int = 60

    # Notifier
    notify_timeout_seconds: float = 10.0

    # Discord
    discord_bot_token: Optional[str] = None
    discord_channel_id: Optional[str] = None

    def __post_init__(self):
        if self.db_path is None:
            self.db_path = self.data_dir / "shamebot.db"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables"""
        data_dir = Path(os.getenv(
            "SHAMEBOT_DATA_DIR", str(_default_data_dir())
        )).expanduser()
        db_path = os.getenv("SHAMEBOT_DB_PATH")

        return cls(
            debug=os.getenv("DEBUG", "").lower() in ("1", "true"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),

            data_dir=data_dir,
            db_path=Path(db_path).expanduser() if db_path else None,
            db_retry_seconds=float(os.getenv("SHAMEBOT_DB_RETRY_SECONDS", "5")),

            pester_unit_seconds=int(os.getenv("SHAMEBOT_PESTER_UNIT_SECONDS", "3600")),
            misfire_grace_seconds=int(os.getenv("SHAMEBOT_MISFIRE_GRACE", "60")),

            notify_timeout_seconds=float(os.getenv("SHAMEBOT_NOTIFY_TIMEOUT", "10")),

            discord_bot_token=os.getenv("SHAMEBOT_DISCORD_TOKEN"),
            discord_channel_id=os.getenv("SHAMEBOT_DISCORD_CHANNEL"),
        )
