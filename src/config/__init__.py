"""Reminder rule configuration: models, loading and environment settings."""

from src.config.exceptions import ConfigError
from src.config.loader import load_config, load_config_file, load_config_from_s3, parse_config
from src.config.models import (
    Destination,
    LogDestination,
    ReminderConfig,
    Rule,
    SesDestination,
    SlackWebhookDestination,
    SnsDestination,
)
from src.config.settings import ReminderSettings, get_reminder_settings

__all__ = [
    "ConfigError",
    "Destination",
    "LogDestination",
    "ReminderConfig",
    "ReminderSettings",
    "Rule",
    "SesDestination",
    "SlackWebhookDestination",
    "SnsDestination",
    "get_reminder_settings",
    "load_config",
    "load_config_file",
    "load_config_from_s3",
    "parse_config",
]
