from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_CONFIG = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)


class AppSettings(BaseSettings):
    """General application settings."""

    model_config = ENV_CONFIG

    name: str = Field("Block Explorer Export", validation_alias="APP_NAME")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, validation_alias="LOG_FILE")


class ExplorerSettings(BaseSettings):
    """Settings for block tracing and the explorer database export."""

    model_config = ENV_CONFIG

    db_params_file: Optional[str] = Field(
        default=None,
        validation_alias="EXPLORER_DB_PARAMS",
        description="Path to a file holding '<postgres|mysql> <connection params>'. Unset disables export.",
    )
    tracer_only_top_call: bool = Field(default=False, validation_alias="EXPLORER_TRACER_ONLY_TOP_CALL")
    tracer_with_log: bool = Field(default=False, validation_alias="EXPLORER_TRACER_WITH_LOG")


class Settings(BaseSettings):
    """
    Main Settings class that composes all sub-settings.
    Each sub-settings model reads its own flat env vars through validation_alias.
    """

    model_config = ENV_CONFIG

    app: AppSettings = Field(default_factory=AppSettings)
    explorer: ExplorerSettings = Field(default_factory=ExplorerSettings)


def load_settings() -> Settings:
    return Settings()
