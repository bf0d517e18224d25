"""Tests for reminder configuration models."""

import unittest
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from src.config.models import (
    LogDestination,
    ReminderConfig,
    Rule,
    SesDestination,
    SlackWebhookDestination,
    SnsDestination,
)


def _valid_config_data() -> dict:
    return {
        "rule": [
            {
                "name": "standup",
                "cron": "0 9 * * 1-5",
                "destinations": ["email", "slack"],
                "subject": "Standup",
                "body": "Daily standup in 5 minutes",
            }
        ],
        "destination": [
            {
                "id": "email",
                "type": "ses",
                "from_email": "reminders@example.com",
                "to_emails": ["team@example.com"],
            },
            {"id": "slack", "type": "slack_webhook", "webhook_url": "https://hooks.example.com/x"},
            {"id": "topic", "type": "sns", "sns_arn": "arn:aws:sns:us-east-1:123:topic"},
            {"id": "log", "type": "log"},
        ],
    }


class TestRule(unittest.TestCase):
    """Tests for Rule model."""

    def test_valid_rule(self) -> None:
        """Test a complete rule validates."""
        rule = Rule(
            name="daily",
            cron="0 9 * * *",
            destinations=["log"],
            subject="Subject",
            body="Body",
        )

        self.assertEqual(rule.name, "daily")
        self.assertEqual(rule.destinations, ["log"])

    def test_empty_fields_rejected(self) -> None:
        """Test each required text field must be non-empty."""
        base = {
            "name": "daily",
            "cron": "0 9 * * *",
            "destinations": ["log"],
            "subject": "Subject",
            "body": "Body",
        }
        for field_name in ("name", "cron", "subject", "body"):
            with self.subTest(field=field_name):
                with self.assertRaises(ValidationError):
                    Rule.model_validate({**base, field_name: ""})

    def test_no_destinations_rejected(self) -> None:
        """Test a rule must have at least one destination."""
        with self.assertRaises(ValidationError):
            Rule(name="daily", cron="0 9 * * *", destinations=[], subject="s", body="b")

    def test_invalid_cron_rejected(self) -> None:
        """Test an unparseable cron expression is rejected."""
        with self.assertRaises(ValidationError) as ctx:
            Rule(name="daily", cron="0 9 * *", destinations=["log"], subject="s", body="b")

        self.assertIn("invalid cron expression", str(ctx.exception))

    def test_cron_that_never_occurs_rejected(self) -> None:
        """Test a well-formed cron with no possible occurrence is rejected."""
        with self.assertRaises(ValidationError) as ctx:
            Rule(name="never", cron="0 0 31 2 *", destinations=["log"], subject="s", body="b")

        self.assertIn("cron expression never occurs", str(ctx.exception))

    def test_rule_is_immutable(self) -> None:
        """Test rules cannot be modified after creation."""
        rule = Rule(name="daily", cron="0 9 * * *", destinations=["log"], subject="s", body="b")

        with self.assertRaises(ValidationError):
            rule.cron = "0 10 * * *"


class TestDestinations(unittest.TestCase):
    """Tests for destination variants."""

    def test_each_type_parses_to_its_variant(self) -> None:
        """Test the type field selects the destination class."""
        config = ReminderConfig.model_validate(_valid_config_data())

        by_id = {d.id: d for d in config.destinations}
        self.assertIsInstance(by_id["email"], SesDestination)
        self.assertIsInstance(by_id["slack"], SlackWebhookDestination)
        self.assertIsInstance(by_id["topic"], SnsDestination)
        self.assertIsInstance(by_id["log"], LogDestination)

    def test_unknown_type_rejected(self) -> None:
        """Test an unsupported destination type is rejected."""
        data = _valid_config_data()
        data["destination"].append({"id": "pager", "type": "pagerduty"})

        with self.assertRaises(ValidationError):
            ReminderConfig.model_validate(data)

    def test_sns_requires_arn(self) -> None:
        """Test an SNS destination without an ARN is rejected."""
        data = _valid_config_data()
        data["destination"][2] = {"id": "topic", "type": "sns"}

        with self.assertRaises(ValidationError):
            ReminderConfig.model_validate(data)

    def test_ses_requires_recipients(self) -> None:
        """Test an SES destination without recipients is rejected."""
        data = _valid_config_data()
        data["destination"][0]["to_emails"] = []

        with self.assertRaises(ValidationError):
            ReminderConfig.model_validate(data)

    def test_ses_requires_sender(self) -> None:
        """Test an SES destination without a sender is rejected."""
        data = _valid_config_data()
        del data["destination"][0]["from_email"]

        with self.assertRaises(ValidationError):
            ReminderConfig.model_validate(data)

    def test_slack_requires_webhook_url(self) -> None:
        """Test a Slack destination without a webhook URL is rejected."""
        data = _valid_config_data()
        data["destination"][1]["webhook_url"] = ""

        with self.assertRaises(ValidationError):
            ReminderConfig.model_validate(data)


class TestReminderConfig(unittest.TestCase):
    """Tests for ReminderConfig cross-field validation."""

    def test_valid_config(self) -> None:
        """Test a valid config parses with TOML aliases."""
        config = ReminderConfig.model_validate(_valid_config_data())

        self.assertEqual([r.name for r in config.rules], ["standup"])
        self.assertEqual(len(config.destinations), 4)
        self.assertIsNone(config.timezone)
        self.assertIsNone(config.zoneinfo)

    def test_field_names_accepted(self) -> None:
        """Test the config can be built with field names as well as aliases."""
        data = _valid_config_data()

        config = ReminderConfig(rules=data["rule"], destinations=data["destination"])

        self.assertEqual(len(config.rules), 1)

    def test_requires_rules(self) -> None:
        """Test at least one rule is required."""
        data = _valid_config_data()
        data["rule"] = []

        with self.assertRaises(ValidationError):
            ReminderConfig.model_validate(data)

    def test_requires_destinations(self) -> None:
        """Test at least one destination is required."""
        data = _valid_config_data()
        data["destination"] = []

        with self.assertRaises(ValidationError):
            ReminderConfig.model_validate(data)

    def test_duplicate_destination_id_rejected(self) -> None:
        """Test destination ids must be unique."""
        data = _valid_config_data()
        data["destination"].append({"id": "log", "type": "log"})

        with self.assertRaises(ValidationError) as ctx:
            ReminderConfig.model_validate(data)

        self.assertIn("duplicate destination id: log", str(ctx.exception))

    def test_duplicate_rule_name_rejected(self) -> None:
        """Test rule names must be unique."""
        data = _valid_config_data()
        data["rule"].append(dict(data["rule"][0]))

        with self.assertRaises(ValidationError) as ctx:
            ReminderConfig.model_validate(data)

        self.assertIn("duplicate rule name: standup", str(ctx.exception))

    def test_unknown_rule_destination_rejected(self) -> None:
        """Test a rule cannot reference an undefined destination."""
        data = _valid_config_data()
        data["rule"][0]["destinations"] = ["missing"]

        with self.assertRaises(ValidationError) as ctx:
            ReminderConfig.model_validate(data)

        self.assertIn("destination missing not found", str(ctx.exception))

    def test_timezone(self) -> None:
        """Test a valid IANA timezone is exposed as a ZoneInfo."""
        data = _valid_config_data()
        data["timezone"] = "America/New_York"

        config = ReminderConfig.model_validate(data)

        self.assertEqual(config.zoneinfo, ZoneInfo("America/New_York"))

    def test_empty_timezone_means_utc(self) -> None:
        """Test an empty timezone string is treated as unset."""
        data = _valid_config_data()
        data["timezone"] = ""

        self.assertIsNone(ReminderConfig.model_validate(data).timezone)

    def test_invalid_timezone_rejected(self) -> None:
        """Test an unknown timezone is rejected."""
        data = _valid_config_data()
        data["timezone"] = "Mars/Olympus_Mons"

        with self.assertRaises(ValidationError) as ctx:
            ReminderConfig.model_validate(data)

        self.assertIn("invalid timezone", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
