"""Deliver reminder notifications to configured destinations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import requests
from botocore.exceptions import BotoCoreError, ClientError

from src.config.models import (
    Destination,
    LogDestination,
    Rule,
    SesDestination,
    SlackWebhookDestination,
    SnsDestination,
)
from src.notifications.formatting import (
    build_slack_payload,
    format_email_html,
    format_sns_message,
    format_sns_subject,
)

if TYPE_CHECKING:
    from mypy_boto3_sesv2 import SESV2Client
    from mypy_boto3_sns import SNSClient

_module_logger = logging.getLogger(__name__)

# Default webhook timeout in seconds
DEFAULT_REQUEST_TIMEOUT = 30


class NotificationError(Exception):
    """Raised when a notification cannot be delivered to a destination."""

    pass


@dataclass
class DispatchResult:
    """Outcome of sending one rule to its destinations.

    :param sent: Ids of destinations that accepted the notification.
    :param failed: Destination id to error message for failed deliveries.
    """

    sent: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True if every destination succeeded."""
        return not self.failed

    def summary(self) -> str:
        """Describe the failures, e.g. for an error message."""
        total = len(self.sent) + len(self.failed)
        details = "; ".join(f"{dest_id}: {err}" for dest_id, err in self.failed.items())
        return f"failed to send {len(self.failed)}/{total} notifications: {details}"


class NotificationSender:
    """Sends rule notifications through SNS, SES, Slack webhooks or the log."""

    def __init__(
        self,
        sns_client: SNSClient | None = None,
        ses_client: SESV2Client | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialise the sender.

        :param sns_client: boto3 SNS client, needed for SNS destinations.
        :param ses_client: boto3 SESv2 client, needed for SES destinations.
        :param logger: Logger to use. Defaults to the module logger.
        """
        self._sns = sns_client
        self._ses = ses_client
        self._logger = logger or _module_logger

    def get_destinations_for_rule(
        self,
        rule: Rule,
        destinations: Sequence[Destination],
    ) -> list[Destination]:
        """Resolve a rule's destination ids, keeping the rule's order.

        :param rule: The rule.
        :param destinations: All configured destinations.
        :returns: The destinations the rule refers to. Unknown ids are skipped.
        """
        by_id = {dest.id: dest for dest in destinations}
        resolved: list[Destination] = []

        for dest_id in rule.destinations:
            dest = by_id.get(dest_id)
            if dest is None:
                self._logger.warning(
                    f"Destination not found for rule: rule={rule.name}, destination_id={dest_id}"
                )
                continue
            resolved.append(dest)

        return resolved

    def send_notifications(
        self,
        rule: Rule,
        destinations: Sequence[Destination],
    ) -> DispatchResult:
        """Send a rule to every destination.

        A failure for one destination does not stop delivery to the others.

        :param rule: The rule to send.
        :param destinations: Resolved destinations for the rule.
        :returns: Which destinations succeeded and which failed.
        """
        result = DispatchResult()

        for dest in destinations:
            self._logger.info(
                f"Sending notification: rule={rule.name}, destination={dest.id}, type={dest.type}"
            )
            try:
                self._send(rule, dest)
            except NotificationError as e:
                self._logger.error(
                    f"Failed to send notification: rule={rule.name}, "
                    f"destination={dest.id}, type={dest.type}, err={e}"
                )
                result.failed[dest.id] = str(e)
                continue
            result.sent.append(dest.id)

        return result

    def _send(self, rule: Rule, dest: Destination) -> None:
        """Dispatch to the channel matching the destination type.

        :raises NotificationError: If delivery fails.
        """
        if isinstance(dest, SnsDestination):
            self._send_sns(rule, dest)
        elif isinstance(dest, SesDestination):
            self._send_ses(rule, dest)
        elif isinstance(dest, SlackWebhookDestination):
            self._send_slack_webhook(rule, dest)
        elif isinstance(dest, LogDestination):
            self._logger.info(
                f"Log notification event: rule={rule.name}, subject={rule.subject!r}, "
                f"body={rule.body!r}"
            )
        else:
            raise NotificationError(f"Unsupported destination type: {type(dest).__name__}")

    def _send_sns(self, rule: Rule, dest: SnsDestination) -> None:
        if self._sns is None:
            raise NotificationError("SNS client not configured")
        try:
            self._sns.publish(
                TopicArn=dest.sns_arn,
                Message=format_sns_message(rule),
                Subject=format_sns_subject(rule),
            )
        except (ClientError, BotoCoreError) as e:
            raise NotificationError(f"Publish to SNS failed: {e}") from e

    def _send_ses(self, rule: Rule, dest: SesDestination) -> None:
        if self._ses is None:
            raise NotificationError("SES client not configured")
        try:
            self._ses.send_email(
                FromEmailAddress=dest.from_email,
                Destination={"ToAddresses": list(dest.to_emails)},
                Content={
                    "Simple": {
                        "Subject": {"Data": rule.subject},
                        "Body": {
                            "Html": {"Data": format_email_html(rule)},
                            "Text": {"Data": rule.body},
                        },
                    }
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise NotificationError(f"Send email via SES failed: {e}") from e

    def _send_slack_webhook(self, rule: Rule, dest: SlackWebhookDestination) -> None:
        try:
            response = requests.post(
                dest.webhook_url,
                json=build_slack_payload(rule),
                timeout=DEFAULT_REQUEST_TIMEOUT,
            )
        except requests.exceptions.Timeout as e:
            raise NotificationError(
                f"Webhook request timed out after {DEFAULT_REQUEST_TIMEOUT}s"
            ) from e
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Webhook request failed: {e}") from e

        if response.status_code != requests.codes.ok:
            raise NotificationError(f"Webhook returned status {response.status_code}")
