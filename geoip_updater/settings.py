"""
Loads and validates the settings of the geoip_updater component.
This module is the single source of truth for all configuration.

Dynaconf merges config/settings.toml, config/.secrets.toml and environment
variables prefixed with GEOIP_UPDATER_ (e.g.
GEOIP_UPDATER_UPDATER__LICENSE_KEY); pydantic then checks the result.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Type

from dynaconf import Dynaconf
from pydantic import BaseModel, Field, ValidationError, field_validator

from .application.domain import Edition
from .application.exceptions import ConfigurationError

PROJECT_ROOT = Path(__file__).parent.parent

_SETTINGS_FILES = ["config/settings.toml"]
_SECRETS_FILES = ["config/.secrets.toml"]

LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class UpdaterSettings(BaseModel):
    """Access to the download service and transfer tuning."""

    base_url: str = "https://download.maxmind.com"
    license_key: str = ""
    user_agent: Optional[str] = None
    timeout: float = Field(default=60.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    chunk_size: int = Field(default=65536, gt=0)
    spool_max_size: int = Field(default=32 * 1024 * 1024, gt=0)
    editions: List[Edition] = Field(default_factory=list)


class PathsSettings(BaseModel):
    """Directories holding the archives and the extracted databases."""

    work_dir: Path = Path("var/work")
    download_dir: Path = Path("var/databases")


class LoggingSettings(BaseModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown logging level {value!r}")
        return level


class AppSettings(BaseModel):
    updater: UpdaterSettings = Field(default_factory=UpdaterSettings)
    paths: PathsSettings = Field(default_factory=PathsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _section(raw: Dynaconf, name: str, model: Type[BaseModel]) -> dict:
    values = {}
    for field in model.model_fields:
        value = raw.get(f"{name}.{field}")
        if value is not None:
            values[field] = value
    return values


def load_settings(
    settings_files: Sequence[str] = _SETTINGS_FILES,
    secrets_files: Sequence[str] = _SECRETS_FILES,
) -> AppSettings:
    """
    Read the configuration files and environment into AppSettings.

    Raises:
        ConfigurationError: If the merged configuration is invalid.
    """

    raw = Dynaconf(
        root_path=PROJECT_ROOT,
        settings_files=list(settings_files),
        secrets=list(secrets_files),
        envvar_prefix="GEOIP_UPDATER",
        merge_enabled=True,
        load_dotenv=False,
        environments=False,
    )

    try:
        return AppSettings(
            updater=_section(raw, "updater", UpdaterSettings),
            paths=_section(raw, "paths", PathsSettings),
            logging=_section(raw, "logging", LoggingSettings),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
