from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RealmRouteSettings(BaseSettings):
    """realmroute configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="REALMROUTE_", env_file=".env", extra="ignore"
    )

    routing_data_file: Path | None = Field(
        None,
        description="JSON document mapping each realm address to its sharding keys.",
    )
    strict_sharding_keys: bool = Field(
        False,
        description="Reject sharding keys that are not absolute paths of word-like segments.",
    )
    log_level: str = Field("INFO", description="Minimum loguru level to emit.")
    debug_scopes: tuple[str, ...] = Field(
        (),
        description="Module prefixes whose DEBUG records are emitted regardless of log_level.",
    )
    colorize_logs: bool = Field(False, description="Colorize log output.")
