"""AniShelf Configuration Settings."""

from __future__ import annotations

import os
from enum import StrEnum
from functools import cached_property, lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from src.utils.logging import _get_logger

__all__ = [
    "AniListConfig",
    "AniShelfConfig",
    "BangumiConfig",
    "LogLevel",
    "SiteType",
    "get_config",
]

_log = _get_logger(__name__)


def get_data_path() -> Path:
    """Return the data directory resolved from the environment."""
    return Path(os.getenv("ANISHELF_DATA_PATH", "./data")).resolve()


def find_yaml_config_file() -> Path:
    """Find the YAML configuration file in the data path.

    Returns:
        Path: The path to an existing YAML configuration file or the default location.
    """
    data_path = get_data_path()

    for ext in ("yaml", "yml"):
        yaml_file = data_path / f"config.{ext}"
        if yaml_file.exists():
            _log.debug(f"Using YAML config file: {yaml_file.resolve()}")
            return yaml_file.resolve()
    return data_path / "config.yaml"


class BaseStrEnum(StrEnum):
    """Base class for string-based enumerations with a custom __repr__ method.

    Provides case-insensitive lookup functionality and consistent string
    representation for enumeration values.
    """

    @classmethod
    def _missing_(cls, value: object) -> BaseStrEnum | None:
        """Handle case-insensitive lookup for enum values.

        Args:
            value: The value to look up in the enumeration

        Returns:
            BaseStrEnum | None: The matching enum member if found, None otherwise
        """
        value = value.lower() if isinstance(value, str) else value
        for member in cls:
            if member.lower() == value:
                return member
        return None

    def __repr__(self) -> str:
        """Return the string value of the enum member."""
        return self.value

    def __str__(self) -> str:
        """Return the string representation of the enum member."""
        return repr(self)


class LogLevel(BaseStrEnum):
    """Enumeration of available logging levels.

    Note: SUCCESS is a custom level used by this application.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SiteType(BaseStrEnum):
    """External metadata sites an anime can be linked to.

    The value is what gets persisted in ``anime_site.site_type``.
    """

    BANGUMI = "Bangumi"
    ANILIST = "AniList"


class BangumiConfig(BaseModel):
    """Connection settings for the Bangumi (bgm.tv) API."""

    token: SecretStr | None = Field(
        default=None, description="Optional Bangumi access token"
    )
    user_agent: str = Field(
        default="anishelf/anishelf (https://github.com/anishelf/anishelf)",
        description="User-Agent sent to the Bangumi API, required by its usage policy",
    )


class AniListConfig(BaseModel):
    """Connection settings for the AniList GraphQL API."""

    token: SecretStr | None = Field(
        default=None, description="Optional AniList access token"
    )


class AniShelfConfig(BaseSettings):
    """Configuration manager for the AniShelf application.

    Configuration is sourced from a YAML file in the data directory (optionally
    combined with parameters passed directly to the model).
    """

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="Logging level for the application"
    )
    refresh_interval: int = Field(
        default=86400,
        ge=0,
        description="Seconds between metadata refresh runs (0 runs once and exits)",
    )
    stale_after: int = Field(
        default=7 * 86400,
        ge=0,
        description="Seconds after which a site link is considered stale",
    )
    refresh_on_start: bool = Field(
        default=True, description="Run a refresh immediately when the app starts"
    )
    enabled_sites: list[SiteType] = Field(
        default_factory=lambda: [SiteType.BANGUMI, SiteType.ANILIST],
        description="Sites whose metadata updaters are registered",
    )
    bangumi: BangumiConfig = Field(
        default_factory=BangumiConfig, description="Bangumi API settings"
    )
    anilist: AniListConfig = Field(
        default_factory=AniListConfig, description="AniList API settings"
    )

    @cached_property
    def data_path(self) -> Path:
        """Get the data path for AniShelf.

        Returns:
            Path: The data path resolved from the environment or default location.
        """
        return get_data_path()

    @model_validator(mode="after")
    def validate_sites(self) -> AniShelfConfig:
        """Drop duplicate site entries while preserving their order."""
        seen: list[SiteType] = []
        for site in self.enabled_sites:
            if site in seen:
                _log.warning(f"Site $$'{site}'$$ listed more than once; ignoring")
                continue
            seen.append(site)
        self.enabled_sites = seen

        if not self.enabled_sites:
            _log.warning("No sites enabled; metadata refresh will skip every link")
        return self

    def __str__(self) -> str:
        """Creates a human-readable representation of the configuration.

        Tokens are never included.
        """
        sites = ", ".join(str(site) for site in self.enabled_sites) or "none"
        return (
            f"AniShelf Config: sites [{sites}], "
            f"refresh_interval: {self.refresh_interval}s, "
            f"stale_after: {self.stale_after}s, "
            f"DATA_PATH: {self.data_path}, LOG_LEVEL: {self.log_level}"
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
        """Customize the order of configuration sources."""
        return (
            init_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=find_yaml_config_file()),
        )

    model_config = SettingsConfigDict(extra="ignore")


@lru_cache(maxsize=1)
def get_config() -> AniShelfConfig:
    """Get the singleton instance of AniShelfConfig.

    Returns:
        AniShelfConfig: The singleton configuration instance.
    """
    return AniShelfConfig()
