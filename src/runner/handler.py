"""Run one reminder evaluation pass: resolve due rules, notify, advance state."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import boto3

from src.config.loader import load_config
from src.config.models import ReminderConfig
from src.config.settings import ReminderSettings, get_reminder_settings
from src.notifications.sender import NotificationSender
from src.observability.sentry import init_sentry
from src.scheduler.exceptions import CronError
from src.scheduler.scheduler import Scheduler
from src.state.store import StateStore, build_state_store
from src.utils.logging import configure_logging

_module_logger = logging.getLogger(__name__)

# Maximum number of error messages to include in the raised exception
MAX_ERRORS_IN_MESSAGE = 5


@dataclass
class ReminderStats:
    """Stats for one evaluation pass."""

    rules_evaluated: int = 0
    rules_due: int = 0
    rules_processed: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        """Summarise the stats for logging or a Lambda response."""
        return {
            "rules_evaluated": self.rules_evaluated,
            "rules_due": self.rules_due,
            "rules_processed": self.rules_processed,
            "errors": list(self.errors),
        }


class ReminderProcessingError(Exception):
    """Raised after a pass in which one or more rules failed.

    State has already been saved when this is raised.
    """

    def __init__(self, stats: ReminderStats) -> None:
        """Initialise ReminderProcessingError.

        :param stats: Stats of the failed pass.
        """
        self.stats = stats
        summary = "; ".join(stats.errors[:MAX_ERRORS_IN_MESSAGE])
        if len(stats.errors) > MAX_ERRORS_IN_MESSAGE:
            summary += f"; ... and {len(stats.errors) - MAX_ERRORS_IN_MESSAGE} more"
        super().__init__(f"Reminder processing errors ({len(stats.errors)}): {summary}")


class ReminderHandler:
    """Drives one evaluation pass against a config source and state store."""

    def __init__(
        self,
        *,
        config_loader: Callable[[], ReminderConfig],
        state_store: StateStore,
        sender: NotificationSender,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialise the handler.

        :param config_loader: Callable returning a validated config.
        :param state_store: Backend holding the run-state document.
        :param sender: Notification sender.
        :param logger: Logger to use. Defaults to the module logger.
        """
        self._load_config = config_loader
        self._state_store = state_store
        self._sender = sender
        self._logger = logger or _module_logger

    def run(self, now: datetime | None = None) -> ReminderStats:
        """Run one evaluation pass.

        Rules whose notifications fail are not advanced, so they are due
        again on the next pass. State is saved even when rules fail.

        :param now: Evaluation instant. Defaults to the current time.
        :returns: Stats for the pass.
        :raises ConfigError: If the config cannot be loaded.
        :raises StateStoreError: If the state cannot be loaded or saved.
        :raises ReminderProcessingError: If any rule failed, after state is saved.
        """
        if now is None:
            now = datetime.now(UTC)

        self._logger.info("Processing scheduled event")
        config = self._load_config()
        state = self._state_store.load()

        scheduler = Scheduler(timezone=config.zoneinfo, logger=self._logger)
        stats = ReminderStats(rules_evaluated=len(config.rules))

        resolution = scheduler.get_due_rules(config.rules, state, now)
        stats.errors.extend(resolution.errors)
        stats.rules_due = len(resolution.due_rules)
        self._logger.info(f"Due rules found: count={stats.rules_due}")

        for rule in resolution.due_rules:
            self._logger.info(f"Processing rule: rule={rule.name}, cron={rule.cron!r}")

            destinations = self._sender.get_destinations_for_rule(rule, config.destinations)
            dispatch = self._sender.send_notifications(rule, destinations)
            if not dispatch.ok:
                error_msg = f"Failed to send notifications for rule {rule.name}: {dispatch.summary()}"
                self._logger.error(error_msg)
                stats.errors.append(error_msg)
                continue

            try:
                scheduler.update_rule_state(state, rule.name, rule.cron, now)
            except CronError as e:
                error_msg = f"Failed to update state for rule {rule.name}: {e}"
                self._logger.error(error_msg)
                stats.errors.append(error_msg)
                continue

            stats.rules_processed += 1

        self._state_store.save(state)

        self._logger.info(
            f"Processing complete: evaluated={stats.rules_evaluated}, due={stats.rules_due}, "
            f"processed={stats.rules_processed}, errors={len(stats.errors)}"
        )

        if stats.errors:
            raise ReminderProcessingError(stats)

        return stats


def build_handler(
    settings: ReminderSettings | None = None,
    config_path: Path | str | None = None,
    state_path: Path | str | None = None,
) -> ReminderHandler:
    """Wire a handler with boto3 clients from the environment.

    :param settings: Reminder settings. Loaded from env if not provided.
    :param config_path: Local config file, instead of S3.
    :param state_path: Local state file, instead of S3.
    :returns: Ready-to-run handler.
    """
    settings = settings or get_reminder_settings()
    region = settings.aws_region
    s3_client = boto3.client("s3", region_name=region)

    return ReminderHandler(
        config_loader=lambda: load_config(settings, s3_client, config_path),
        state_store=build_state_store(settings, s3_client, state_path),
        sender=NotificationSender(
            sns_client=boto3.client("sns", region_name=region),
            ses_client=boto3.client("sesv2", region_name=region),
        ),
    )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda entry point for the scheduled (EventBridge) trigger.

    :param event: The scheduled event. Its contents are not used.
    :param context: Lambda context.
    :returns: Stats for the pass.
    :raises ReminderProcessingError: If any rule failed, so Lambda reports the error.
    """
    configure_logging()
    init_sentry()
    _module_logger.info(f"Received scheduled event: id={event.get('id')}")

    stats = build_handler().run()
    return stats.as_dict()
