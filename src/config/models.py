"""Pydantic models for reminder rules and notification destinations."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.scheduler.cron import next_run_after, validate_cron
from src.scheduler.exceptions import CronError

NonEmptyStr = Annotated[str, Field(min_length=1)]


class Rule(BaseModel):
    """A named, cron-scheduled reminder."""

    model_config = ConfigDict(frozen=True)

    name: NonEmptyStr = Field(..., description="Unique rule name")
    cron: NonEmptyStr = Field(..., description="5-field cron expression")
    destinations: list[NonEmptyStr] = Field(
        ..., min_length=1, description="Destination ids, in delivery order"
    )
    subject: NonEmptyStr = Field(..., description="Notification subject")
    body: NonEmptyStr = Field(..., description="Notification body")

    @field_validator("cron")
    @classmethod
    def validate_cron_expression(cls, v: str) -> str:
        """Reject cron expressions the scheduler cannot evaluate.

        Expressions that parse but never match (e.g. 31 February) are
        rejected too.

        :param v: The cron expression.
        :returns: The validated expression.
        :raises ValueError: If the expression is invalid or never occurs.
        """
        if not validate_cron(v):
            raise ValueError(f"invalid cron expression: {v}")
        try:
            next_run_after(v, datetime.now(UTC))
        except CronError as e:
            raise ValueError(f"cron expression never occurs: {v}") from e
        return v


class _BaseDestination(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: NonEmptyStr = Field(..., description="Unique destination id")


class SnsDestination(_BaseDestination):
    """Publish to an SNS topic."""

    type: Literal["sns"]
    sns_arn: NonEmptyStr


class SesDestination(_BaseDestination):
    """Send an email through SES."""

    type: Literal["ses"]
    from_email: NonEmptyStr
    to_emails: list[NonEmptyStr] = Field(..., min_length=1)


class SlackWebhookDestination(_BaseDestination):
    """POST to a Slack incoming webhook."""

    type: Literal["slack_webhook"]
    webhook_url: NonEmptyStr


class LogDestination(_BaseDestination):
    """Write the reminder to the application log."""

    type: Literal["log"]


Destination = Annotated[
    SnsDestination | SesDestination | SlackWebhookDestination | LogDestination,
    Field(discriminator="type"),
]


class ReminderConfig(BaseModel):
    """Complete reminder configuration.

    Field aliases match the TOML layout: ``[[rule]]`` and ``[[destination]]``
    tables plus an optional top-level ``timezone``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    rules: list[Rule] = Field(..., alias="rule", min_length=1)
    destinations: list[Destination] = Field(..., alias="destination", min_length=1)
    timezone: str | None = Field(default=None, description="IANA zone for cron evaluation")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        """Check the timezone is a known IANA zone.

        :param v: Zone name, or None/empty for UTC.
        :returns: The zone name, or None.
        :raises ValueError: If the zone cannot be loaded.
        """
        if not v:
            return None
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"invalid timezone: {v}") from e
        return v

    @model_validator(mode="after")
    def validate_references(self) -> ReminderConfig:
        """Check ids are unique and every rule destination exists.

        :returns: The validated config.
        :raises ValueError: On duplicate ids or unknown destinations.
        """
        destination_ids: set[str] = set()
        for destination in self.destinations:
            if destination.id in destination_ids:
                raise ValueError(f"duplicate destination id: {destination.id}")
            destination_ids.add(destination.id)

        rule_names: set[str] = set()
        for rule in self.rules:
            if rule.name in rule_names:
                raise ValueError(f"duplicate rule name: {rule.name}")
            rule_names.add(rule.name)

            for destination_id in rule.destinations:
                if destination_id not in destination_ids:
                    raise ValueError(f"rule {rule.name}: destination {destination_id} not found")

        return self

    @property
    def zoneinfo(self) -> ZoneInfo | None:
        """The configured zone, or None for UTC."""
        return ZoneInfo(self.timezone) if self.timezone else None
