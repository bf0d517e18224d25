"""Load the TOML rule configuration from a local file or S3."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from src.config.exceptions import ConfigError
from src.config.models import ReminderConfig

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

    from src.config.settings import ReminderSettings

logger = logging.getLogger(__name__)


def parse_config(text: str) -> ReminderConfig:
    """Parse and validate a TOML config document.

    :param text: TOML document.
    :returns: Validated config.
    :raises ConfigError: If the TOML is malformed or fails validation.
    """
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to decode config: {e}") from e

    try:
        config = ReminderConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {e}") from e

    logger.info(
        f"Config loaded: rules={len(config.rules)}, destinations={len(config.destinations)}"
    )
    return config


def load_config_file(path: Path | str) -> ReminderConfig:
    """Load config from a local TOML file.

    :param path: Path to the config file.
    :returns: Validated config.
    :raises ConfigError: If the file cannot be read or is invalid.
    """
    logger.info(f"Loading config: path={path}")
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to open config file {path}: {e}") from e
    return parse_config(text)


def load_config_from_s3(s3_client: S3Client, bucket: str, key: str) -> ReminderConfig:
    """Load config from an S3 object.

    :param s3_client: boto3 S3 client.
    :param bucket: Bucket name.
    :param key: Object key.
    :returns: Validated config.
    :raises ConfigError: If the object cannot be fetched or is invalid.
    """
    logger.info(f"Loading config: bucket={bucket}, key={key}")
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        text = response["Body"].read().decode("utf-8")
    except (ClientError, BotoCoreError) as e:
        raise ConfigError(f"Failed to get config from s3://{bucket}/{key}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"Config at s3://{bucket}/{key} is not valid UTF-8") from e
    return parse_config(text)


def load_config(
    settings: ReminderSettings,
    s3_client: S3Client | None,
    config_path: Path | str | None = None,
) -> ReminderConfig:
    """Load config from a local path if given, otherwise from S3.

    :param settings: Reminder settings with the S3 config location.
    :param s3_client: boto3 S3 client, required when no local path is given.
    :param config_path: Local config file. Takes precedence over S3.
    :returns: Validated config.
    :raises ConfigError: If the location is not configured or loading fails.
    """
    if config_path:
        return load_config_file(config_path)

    if not settings.s3_config_bucket:
        raise ConfigError("S3_CONFIG_BUCKET environment variable not set")
    if not settings.s3_config_path:
        raise ConfigError("S3_CONFIG_PATH environment variable not set")
    if s3_client is None:
        raise ConfigError("An S3 client is required to load config from S3")

    return load_config_from_s3(s3_client, settings.s3_config_bucket, settings.s3_config_path)
