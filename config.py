import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

log = logging.getLogger("fileshare.config")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# ----------------------------
# DEFAULTS
# ----------------------------
DEFAULT_BASE_DIR = "/app/data"
DEFAULT_DATABASE_URL = "sqlite:///fileshare.db"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_SHORT_CODE_LENGTH = 8
DEFAULT_SHORT_CODE_ATTEMPTS = 10
DEFAULT_MAX_UPLOAD_MB = 512

# The only two places files may live under BASE_DIR
PUBLIC_DIR = "public"
PRIVATE_DIR = "private"
SUBTREES = (PUBLIC_DIR, PRIVATE_DIR)


@dataclass(frozen=True)
class Settings:
    base_dir: Path
    database_url: str = DEFAULT_DATABASE_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    admin_token: Optional[str] = None
    short_code_length: int = DEFAULT_SHORT_CODE_LENGTH
    short_code_attempts: int = DEFAULT_SHORT_CODE_ATTEMPTS
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default
    if value <= 0:
        log.warning("Ignoring non-positive %s=%r, using %d", name, raw, default)
        return default
    return value


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Read settings from the environment.
    A .env file (the given one, or ./.env if present) is loaded first but never
    overrides variables that are already set.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    return Settings(
        base_dir=Path(os.getenv("BASE_DIR", DEFAULT_BASE_DIR)).resolve(),
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        host=os.getenv("HOST", DEFAULT_HOST),
        port=_int_env("PORT", DEFAULT_PORT),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        short_code_length=_int_env("SHORT_CODE_LENGTH", DEFAULT_SHORT_CODE_LENGTH),
        short_code_attempts=_int_env("SHORT_CODE_ATTEMPTS", DEFAULT_SHORT_CODE_ATTEMPTS),
        max_upload_mb=_int_env("MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger("fileshare").setLevel(numeric_level)
