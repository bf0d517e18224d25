"""Message builders for each notification channel."""

import html
from typing import Any

from src.config.models import Rule

SLACK_USERNAME = "Reminder Bot"
SLACK_ICON_EMOJI = ":bell:"

# SNS rejects subjects longer than 100 characters
SNS_SUBJECT_MAX_LENGTH = 100


def format_sns_message(rule: Rule) -> str:
    """Build the plain-text SNS message for a rule.

    :param rule: The rule being sent.
    :returns: Message text.
    """
    return f"Reminder: {rule.subject}\n\n{rule.body}"


def format_sns_subject(rule: Rule) -> str:
    """Build an SNS subject that fits within SNS's length limit."""
    subject = " ".join(rule.subject.split())
    if len(subject) <= SNS_SUBJECT_MAX_LENGTH:
        return subject
    return subject[: SNS_SUBJECT_MAX_LENGTH - 3] + "..."


def format_email_html(rule: Rule) -> str:
    """Build the HTML email body for a rule.

    Subject and body are escaped so rule text cannot inject markup.

    :param rule: The rule being sent.
    :returns: HTML document.
    """
    subject = html.escape(rule.subject)
    body = html.escape(rule.body).replace("\n", "<br>\n")
    return (
        "<html>\n"
        f"<head><title>{subject}</title></head>\n"
        "<body>\n"
        f"<h2>{subject}</h2>\n"
        f"<p>{body}</p>\n"
        "</body>\n"
        "</html>"
    )


def build_slack_payload(rule: Rule) -> dict[str, Any]:
    """Build the Slack incoming-webhook payload for a rule.

    :param rule: The rule being sent.
    :returns: JSON-serialisable payload.
    """
    return {
        "text": f"Reminder: {rule.subject}",
        "username": SLACK_USERNAME,
        "icon_emoji": SLACK_ICON_EMOJI,
        "attachments": [
            {
                "color": "good",
                "title": rule.subject,
                "text": rule.body,
                "fields": [
                    {"title": "Rule", "value": rule.name, "short": True},
                    {"title": "Schedule", "value": rule.cron, "short": True},
                ],
            }
        ],
    }
