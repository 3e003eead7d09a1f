import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _opt_env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v not in (None, "") else default


def _flag(name: str, default: bool = False) -> bool:
    raw = _opt_env(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


DATA_DIR = Path(_opt_env("WODLOG_DATA_DIR", "data") or "data")
CATALOG_FILE = Path(__file__).resolve().parent / "data" / "wods.json"
CATALOG_URL = _opt_env("WODLOG_CATALOG_URL")
SESSION_COOKIE = "wodlog_session"
SESSION_TTL_HOURS = int(_opt_env("WODLOG_SESSION_TTL_HOURS", "720") or "720")
COOKIE_SECURE = _flag("WODLOG_COOKIE_SECURE")
AUTO_SEED = _flag("WODLOG_AUTO_SEED", True)
LOG_LEVEL = (_opt_env("WODLOG_LOG_LEVEL", "INFO") or "INFO").upper()
HOST = _opt_env("WODLOG_HOST", "127.0.0.1") or "127.0.0.1"
PORT = int(_opt_env("WODLOG_PORT", "8000") or "8000")


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
