"""Runtime configuration for the hand recommender CLI."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="HAND_RECOMMENDER_", env_file=".env", extra="ignore")

    app_name: str = "hand-recommender"
    log_level: str = "WARNING"
    catalog_path: str | None = Field(
        default=None,
        description="JSON action catalog used when a command is not given --catalog.",
    )
    targets_hand_size: int = Field(default=5, ge=4, le=6)
    default_now_ms: int | None = Field(
        default=None,
        description="Fixed clock for reproducible snapshot ids; wall clock when unset.",
    )


settings = Settings()
