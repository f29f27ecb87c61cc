"""
Application configuration.

Two layers:
  1. Runtime settings from the environment (paths, token backend, CORS),
     with Docker secrets support via the _read_secret() pattern:
       a. Direct env var (e.g., REDIS_PASSWORD)
       b. File-based env var (e.g., REDIS_PASSWORD_FILE → reads file path)
       c. Raises ValueError if neither is set
  2. Retention and region settings from appsettings.json. A missing or
     invalid file falls back to the built-in defaults, never fatal.
"""

import json
import os
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import ConfigParseError

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., REDIS_PASSWORD)
        file_env_var: File path env var name (e.g., REDIS_PASSWORD_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    value = os.environ.get(env_var)
    if value:
        return value

    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error(f"Secret file not found: {file_path} (from {file_env_var})")
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path} (from {file_env_var})")

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


class RotateType(str, Enum):
    """Which retention rule prunes the snapshot history."""

    # keep the newest rotate_count snapshots
    HISTORY_COUNT = "history_count"
    # by days, drop snapshots older than rotate_time
    STORED_TIME = "stored_time"
    # by MB, drop oldest snapshots until the history fits rotate_size
    TOTAL_SIZE = "total_size"


class AppSettings(BaseModel):
    """Retention and region-block settings read from appsettings.json."""

    model_config = ConfigDict(frozen=True)

    rotate_type: RotateType = RotateType.HISTORY_COUNT
    rotate_count: int = Field(100, gt=0)
    rotate_time: int = Field(30, gt=0)
    rotate_size: int = Field(200, gt=0)
    enable_region_block: bool = True
    white_region_code_list: list[str] = Field(default_factory=lambda: ["SG"])

    @property
    def rotate_size_bytes(self) -> int:
        return self.rotate_size * BYTES_PER_MB


def parse_app_settings(text: str) -> AppSettings:
    """Parse appsettings.json content.

    Accepts both ``{"settings": {...}}`` and the bare settings object.

    Raises:
        ConfigParseError: If the text is not valid JSON or fails validation.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid JSON: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("settings"), dict):
        data = data["settings"]
    if not isinstance(data, dict):
        raise ConfigParseError("Settings must be a JSON object")

    try:
        return AppSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(str(e)) from e


def load_app_settings(path: str | Path) -> AppSettings:
    """Load appsettings.json, falling back to defaults on any problem."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Settings file {path} unreadable ({e}), using defaults")
        return AppSettings()

    try:
        app_settings = parse_app_settings(text)
    except ConfigParseError as e:
        logger.warning(f"Settings file {path} invalid ({e}), using defaults")
        return AppSettings()

    logger.info(f"Loaded settings from {path}: rotate_type={app_settings.rotate_type.value}")
    return app_settings


class Settings:
    """Runtime settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Storage
        self.data_dir = Path(os.environ.get("DATA_DIR", "./data"))
        self.app_settings_path = Path(
            os.environ.get("APP_SETTINGS_PATH", "./config/appsettings.json")
        )
        self.ip_table_path = Path(
            os.environ.get("IP_TABLE_PATH", "./config/dbip-country-ipv4-num.csv")
        )
        self.credentials_path = Path(
            os.environ.get("CREDENTIALS_PATH", str(self.data_dir / "users.txt"))
        )

        # Tokens
        self.token_backend = os.environ.get("TOKEN_BACKEND", "file").lower()
        self.redis_url = self._build_redis_url()

        # HTTP
        self.forwarded_for_header = os.environ.get("FORWARDED_FOR_HEADER", "X-Forwarded-For")
        self.cors_origins = [
            origin.strip()
            for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        # Logging
        self.log_dir = Path(os.environ.get("LOG_DIR", "./logs"))
        self.log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    def _build_redis_url(self) -> str:
        """Build the Redis URL with password from secrets."""
        base_url = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
        try:
            password = _read_secret("REDIS_PASSWORD")
            # redis://host → redis://:pass@host
            if "://" in base_url and "@" not in base_url:
                scheme, rest = base_url.split("://", 1)
                base_url = f"{scheme}://:{password}@{rest}"
        except ValueError:
            logger.debug("REDIS_PASSWORD not set, using REDIS_URL as-is")
        return base_url

    @property
    def history_dir(self) -> Path:
        return self.data_dir / "history"


settings = Settings()
