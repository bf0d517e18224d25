"""Pydantic models for persisted per-rule run-state."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator


class RuleState(BaseModel):
    """Run bookkeeping for a single rule.

    ``cron_expr`` and ``timezone`` are the schedule the timestamps were
    computed from, used to detect schedule edits. A ``None`` timezone means
    UTC. A ``None`` timestamp means "never"; a rule with no
    ``next_run_time`` is treated as due.
    """

    name: str = Field(..., description="Rule name this state belongs to")
    cron_expr: str = Field(..., description="Cron expression as of the last evaluation")
    timezone: str | None = Field(
        default=None, description="Zone the cron was evaluated in, or None for UTC"
    )
    last_run_time: datetime | None = Field(default=None, description="When the rule last ran")
    next_run_time: datetime | None = Field(default=None, description="When the rule is next due")

    @field_validator("last_run_time", "next_run_time")
    @classmethod
    def normalise_timestamp(cls, v: datetime | None) -> datetime | None:
        """Normalise timestamps to UTC and map the zero timestamp to None.

        Older state files store "never" as ``0001-01-01T00:00:00Z``.

        :param v: Parsed timestamp.
        :returns: UTC-aware timestamp, or None.
        """
        if v is None or v.year == 1:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)


class ReminderState(BaseModel):
    """The persisted state aggregate: rule name to RuleState."""

    rules: dict[str, RuleState] = Field(default_factory=dict)

    @field_validator("rules", mode="before")
    @classmethod
    def default_rules(cls, v: Any) -> Any:
        """Treat a null rules mapping as empty.

        :param v: Raw value from the document.
        :returns: The value, or an empty dict if null.
        """
        return {} if v is None else v

    def get(self, rule_name: str) -> RuleState | None:
        """Get the state for a rule.

        :param rule_name: The rule name.
        :returns: The rule's state, or None if it has never been evaluated.
        """
        return self.rules.get(rule_name)

    def set(self, rule_state: RuleState) -> None:
        """Insert or replace the state for a rule, keyed by its name.

        :param rule_state: The state to store.
        """
        self.rules[rule_state.name] = rule_state

    def to_json(self) -> str:
        """Serialise the state to an indented JSON document."""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, data: str | bytes) -> "ReminderState":
        """Parse a state JSON document.

        :param data: Raw JSON document.
        :returns: Parsed state. Empty documents give an empty state.
        """
        if not data or not data.strip():
            return cls()
        return cls.model_validate_json(data)
