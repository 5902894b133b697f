"""Runtime configuration.

Settings come from the environment (optionally through a ``.env`` file):

    LIFTLOG_DATA_DIR      where the local database and device id live
    LIFTLOG_SYNC_URL      base URL of the sync server; unset disables sync
    LIFTLOG_SYNC_TIMEOUT  request timeout in seconds (default 30)
    LIFTLOG_LOG_LEVEL     DEBUG, INFO, WARNING, ... (default WARNING)
    LIFTLOG_LOG_FORMAT    "console" or "json" (default console)
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Default data directory
DATA_DIR = Path(__file__).parent.parent.parent / "data"

DB_FILENAME = "liftlog.db"
SERVER_DB_FILENAME = "liftlog_server.db"
DEVICE_ID_FILENAME = "device_id"


@dataclass
class Settings:
    """Resolved liftlog settings."""

    data_dir: Path = DATA_DIR
    sync_url: str | None = None
    sync_timeout: float = 30.0
    log_level: str = "WARNING"
    log_format: str = "console"

    @property
    def db_path(self) -> Path:
        return get_db_path(self.data_dir)

    @property
    def device_id_path(self) -> Path:
        return self.data_dir / DEVICE_ID_FILENAME

    @property
    def sync_enabled(self) -> bool:
        return bool(self.sync_url)


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the local database file path."""
    if data_dir is None:
        data_dir = DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / DB_FILENAME


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment.

    Args:
        env_file: Optional explicit .env path; values in it override the
            process environment.
    """
    if env_file:
        load_dotenv(dotenv_path=env_file, override=True)
    else:
        load_dotenv()

    data_dir = os.environ.get("LIFTLOG_DATA_DIR")
    return Settings(
        data_dir=Path(data_dir) if data_dir else DATA_DIR,
        sync_url=os.environ.get("LIFTLOG_SYNC_URL") or None,
        sync_timeout=float(os.environ.get("LIFTLOG_SYNC_TIMEOUT", "30")),
        log_level=os.environ.get("LIFTLOG_LOG_LEVEL", "WARNING"),
        log_format=os.environ.get("LIFTLOG_LOG_FORMAT", "console"),
    )
