"""Configuration management for notif."""

import os
import re
import yaml
from pathlib import Path
from typing import Optional, Any, List, Literal
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv


# Load environment variables from .env file
load_dotenv()


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

# Keys double as file names for the file backend
STORAGE_KEY_PATTERN = r"^[A-Za-z0-9_.-]+$"


class EnvSettings(BaseSettings):
    """Process environment overrides (NOTIF_* variables)."""
    model_config = SettingsConfigDict(env_prefix="NOTIF_", extra="ignore")

    config_path: Optional[Path] = Field(default=None, description="Path to the YAML config file")
    log_level: Optional[str] = Field(default=None, description="Overrides logging.level")


class StorageConfig(BaseModel):
    """Where reminders are persisted."""
    backend: Literal["file", "memory"] = Field(default="file", description="Key-value backend")
    path: str = Field(default="~/.notif", description="Directory for the file backend")
    key: str = Field(
        default="reminders",
        pattern=STORAGE_KEY_PATTERN,
        description="Well-known key holding the reminder list",
    )


class NotificationsConfig(BaseModel):
    """Local notification sink configuration."""
    enabled: bool = Field(default=True, description="Whether triggers are accepted and fired")
    check_interval_seconds: int = Field(default=30, ge=1, description="Interval between due checks")
    title: str = Field(default="Reminder", description="Title attached to every notification")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    show_timestamps: bool = Field(default=False, description="Prefix log lines with HH:MM:SS")


class ApiConfig(BaseModel):
    """HTTP API binding."""
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8000, description="Bind port")


class AppConfig(BaseModel):
    """Application configuration."""
    storage: StorageConfig = Field(default_factory=StorageConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)


def expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in configuration data.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        if data.startswith("${") and data.endswith("}"):
            var_part = data[2:-1]
            if ":" in var_part:
                var_name, default_value = var_part.split(":", 1)
                return os.getenv(var_name, default_value)
            return os.getenv(var_part, data)
        return data
    else:
        return data


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to config YAML file. Defaults to NOTIF_CONFIG_PATH,
            then config/config.yaml

    Returns:
        AppConfig: Loaded configuration. A missing file yields the defaults.

    Raises:
        ValueError: If configuration is invalid
    """
    env = EnvSettings()
    if config_path is None:
        config_path = env.config_path or DEFAULT_CONFIG_PATH

    config_data: dict = {}
    if config_path.exists():
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

    config_data = expand_env_vars(config_data)

    try:
        config = AppConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}")

    if env.log_level:
        config.logging.level = env.log_level.upper()
    return config


def validate_config(config: AppConfig) -> List[str]:
    """Validate configuration values that pydantic cannot check on its own.

    Args:
        config: Application configuration

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if config.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"Unknown logging level: {config.logging.level}")

    if not re.fullmatch(STORAGE_KEY_PATTERN, config.storage.key):
        errors.append(
            f"storage.key must only use letters, digits, '.', '_' or '-': {config.storage.key!r}"
        )

    if config.storage.backend == "file":
        storage_dir = Path(config.storage.path).expanduser()
        if storage_dir.exists() and not storage_dir.is_dir():
            errors.append(f"storage.path is not a directory: {storage_dir}")

    if not config.notifications.title.strip():
        errors.append("notifications.title must not be empty")

    return errors
