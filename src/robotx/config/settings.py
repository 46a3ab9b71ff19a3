"""Pydantic settings model for robotx configuration.

Source priority (highest to lowest):

    1. Init keyword arguments
    2. Environment variables (prefix ROBOTX_, e.g., ROBOTX_CACHE_DIR)
    3. .env file
    4. YAML config file (ROBOTX_CONFIG_FILE, else config/robots.yaml)
    5. Default values defined here

The default YAML and .env paths are resolved relative to PROJECT_ROOT, the
repository root of a source checkout. An installed wheel ships neither file
and PROJECT_ROOT then points outside the package, so those sources are
silently empty; installed deployments set ROBOTX_CONFIG_FILE to an explicit
YAML path (or rely on ROBOTX_* variables alone).
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# Resolve project root: settings.py -> config/ -> robotx/ -> src/ -> repo root
PROJECT_ROOT = Path(__file__).resolve().parents[3]

_CONFIG_DIR = PROJECT_ROOT / "config"
_ENV_FILE = PROJECT_ROOT / ".env"

CONFIG_FILE_ENV = "ROBOTX_CONFIG_FILE"

ONE_WEEK_SECONDS = 7 * 24 * 60 * 60


def config_file() -> Path:
    """YAML config path: ROBOTX_CONFIG_FILE if set, else the checkout default."""
    explicit = os.environ.get(CONFIG_FILE_ENV)
    return Path(explicit) if explicit else _CONFIG_DIR / "robots.yaml"


class RobotsSettings(BaseSettings):
    """robots.txt retrieval: agent identity, caching, HTTP pacing, logging."""

    user_agent: str = "robotx/1.0"

    # Cache root for fetched robots.txt files; None disables caching
    cache_dir: Optional[str] = None
    cache_expiry_seconds: int = Field(default=ONE_WEEK_SECONDS, ge=0)

    # Default HTTP stream source
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    fetch_attempts: int = Field(default=3, ge=1)

    # Logging (only used when the embedder calls setup_logging)
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10MB
    log_backup_count: int = 5

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "robots.yaml"),
        env_file=str(_ENV_FILE),
        env_prefix="ROBOTX_",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=config_file()),
            file_secret_settings,
        )
