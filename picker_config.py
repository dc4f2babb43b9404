"""Runtime settings for the picker service, read from the environment / .env."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parent

DEFAULT_SOURCE_URL = "https://data.ny.gov/api/views/d6yy-54nr/rows.json?accessType=DOWNLOAD"


@dataclass(frozen=True)
class Settings:
    source_url: str = DEFAULT_SOURCE_URL
    sync_token: Optional[str] = None
    store_path: Optional[str] = None
    data_file: str = str(ROOT_DIR / "historical_data.csv")
    http_timeout: float = 30.0
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    """Build Settings from POWERBALL_* variables, loading a .env file first if present."""
    load_dotenv()
    return Settings(
        source_url=os.getenv("POWERBALL_SOURCE_URL") or DEFAULT_SOURCE_URL,
        sync_token=os.getenv("POWERBALL_SYNC_TOKEN") or None,
        store_path=os.getenv("POWERBALL_STORE_PATH") or None,
        data_file=os.getenv("POWERBALL_DATA_FILE") or str(ROOT_DIR / "historical_data.csv"),
        http_timeout=_float_env("POWERBALL_HTTP_TIMEOUT", 30.0),
        log_level=(os.getenv("POWERBALL_LOG_LEVEL") or "INFO").upper(),
    )
