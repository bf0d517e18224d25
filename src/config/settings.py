"""Environment settings for the reminder service using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.paths import PROJECT_ROOT

_ENV_FILE = PROJECT_ROOT / ".env"


class ReminderSettings(BaseSettings):
    """Where configuration and state live, and how often the loop runs.

    Loaded from unprefixed environment variables (S3_CONFIG_BUCKET etc.).

    :param s3_config_bucket: Bucket holding the TOML rule config.
    :param s3_config_path: Key of the TOML rule config.
    :param s3_state_bucket: Bucket holding the run-state document.
    :param s3_state_dir: Optional key prefix for the run-state document.
    :param aws_region: AWS region for boto3 clients.
    :param loop_interval_seconds: Seconds between passes in loop mode.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    s3_config_bucket: str | None = Field(default=None, description="Config bucket")
    s3_config_path: str | None = Field(default=None, description="Config object key")
    s3_state_bucket: str | None = Field(default=None, description="State bucket")
    s3_state_dir: str | None = Field(default=None, description="State key prefix")
    aws_region: str | None = Field(default=None, description="AWS region")
    loop_interval_seconds: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Seconds between evaluation passes in loop mode",
    )


@lru_cache
def get_reminder_settings() -> ReminderSettings:
    """Get cached reminder settings.

    :returns: Configured ReminderSettings instance.
    """
    return ReminderSettings()
