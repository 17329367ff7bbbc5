"""
Configuration Management for billqr

Uses pydantic-settings for type-safe configuration from environment variables.

All tunable values are centralized here. Wire-format constants (TLV tags,
the NAPAS GUID, currency code, schema version) are NOT settings: changing
them would break interoperability with banking apps and existing links.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BILLQR_LOG_",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level (DEBUG, INFO, WARNING, ERROR)"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON instead of console text"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        level = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return level


class ShareSettings(BaseSettings):
    """Shared-bill construction defaults."""

    model_config = SettingsConfigDict(
        env_prefix="BILLQR_SHARE_",
        extra="ignore"
    )

    item_id_length: int = Field(
        default=10,
        ge=4,
        le=32,
        description="Length of generated item ids"
    )
    default_bill_name: str = Field(
        default="Bill",
        min_length=1,
        max_length=80,
        description="Bill name used when the owner leaves it blank"
    )


class RenderSettings(BaseSettings):
    """QR image rendering configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BILLQR_QR_",
        extra="ignore"
    )

    box_size: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Pixels per QR module"
    )
    border: int = Field(
        default=4,
        ge=0,
        le=20,
        description="Quiet zone width in modules"
    )
    error_correction: str = Field(
        default="M",
        pattern="^[LMQH]$",
        description="QR error correction level"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @property
    def share(self) -> ShareSettings:
        return ShareSettings()

    @property
    def render(self) -> RenderSettings:
        return RenderSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an additional
    "<name>_error" entry for each section that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("logging", "share", "render"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
