"""Due-rule resolution and run-state advancement.

The scheduler reconciles configured rules with their persisted run-state:

1. A rule with no state is bootstrapped with its next run time and is never
   due in the same pass.
2. A rule whose cron expression or evaluation zone changed gets a fresh next
   run time (its last run time is kept) and is not due in the pass the edit
   is detected.
3. Otherwise a rule is due once ``now`` reaches its next run time.

Due rules are always returned in configuration order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from typing import TYPE_CHECKING

from src.scheduler.cron import next_run_after, validate_cron
from src.scheduler.exceptions import CronError, InvalidCronExpressionError
from src.state.models import ReminderState, RuleState

if TYPE_CHECKING:
    from src.config.models import Rule

_module_logger = logging.getLogger(__name__)


def _as_utc(value: datetime, name: str) -> datetime:
    if value.tzinfo is None:
        raise ValueError(f"{name} must be timezone-aware")
    return value.astimezone(UTC)


@dataclass
class DueRulesResult:
    """Outcome of resolving which rules are due.

    :param due_rules: Rules due now, in configuration order.
    :param errors: Per-rule failures, each naming the rule and the cause.
    """

    due_rules: list[Rule] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class Scheduler:
    """Decides which rules are due and advances their run-state."""

    def __init__(
        self,
        timezone: tzinfo | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialise the scheduler.

        :param timezone: Zone in which cron expressions are evaluated. Defaults to UTC.
        :param logger: Logger to use. Defaults to the module logger.
        """
        self._timezone = timezone
        self._logger = logger or _module_logger

    @property
    def timezone(self) -> tzinfo | None:
        """Zone used for cron evaluation, or None for UTC."""
        return self._timezone

    @property
    def timezone_name(self) -> str | None:
        """Name of the evaluation zone as stored in run-state, or None for UTC."""
        if self.timezone is None:
            return None
        return getattr(self.timezone, "key", None) or str(self.timezone)

    def validate_rule(self, rule: Rule) -> None:
        """Check a rule's cron expression can be evaluated.

        :param rule: The rule to check.
        :raises InvalidCronExpressionError: If the cron expression is invalid.
        """
        if not validate_cron(rule.cron):
            raise InvalidCronExpressionError(rule.cron)

    def get_next_run_time(self, cron_expr: str, from_time: datetime) -> datetime:
        """Calculate the next run time strictly after ``from_time``.

        :param cron_expr: Cron expression.
        :param from_time: Reference instant. Must be timezone-aware.
        :returns: Next run time in UTC.
        :raises CronError: If the expression cannot be evaluated.
        """
        return next_run_after(cron_expr, from_time, self._timezone)

    def is_due(self, rule_state: RuleState, now: datetime) -> bool:
        """Check whether a rule is due.

        :param rule_state: The rule's current state.
        :param now: Current instant. Must be timezone-aware.
        :returns: True if the rule has no next run time or ``now`` has reached it.
        """
        if rule_state.next_run_time is None:
            return True
        return _as_utc(now, "now") >= rule_state.next_run_time

    def get_due_rules(
        self,
        rules: Sequence[Rule],
        state: ReminderState,
        now: datetime,
    ) -> DueRulesResult:
        """Resolve which rules are due, bootstrapping and refreshing state in place.

        A cron failure for one rule is logged and recorded; it never stops
        the other rules from being evaluated. State entries for rules that
        are no longer configured are left untouched.

        :param rules: Configured rules, in order.
        :param state: Run-state to reconcile. Mutated in place.
        :param now: Current instant. Must be timezone-aware.
        :returns: Due rules in configuration order, plus per-rule errors.
        """
        now = _as_utc(now, "now")
        result = DueRulesResult()

        for rule in rules:
            rule_state = state.get(rule.name)

            if rule_state is None:
                self._bootstrap_rule(rule, state, now, result)
                continue

            if (
                rule_state.cron_expr != rule.cron
                or rule_state.timezone != self.timezone_name
            ):
                self._refresh_changed_rule(rule, rule_state, state, now, result)
                continue

            if self.is_due(rule_state, now):
                self._logger.info(
                    f"Rule is due: rule={rule.name}, next_run={rule_state.next_run_time}, now={now}"
                )
                result.due_rules.append(rule)
            else:
                self._logger.debug(
                    f"Rule not due: rule={rule.name}, next_run={rule_state.next_run_time}, now={now}"
                )

        return result

    def _bootstrap_rule(
        self,
        rule: Rule,
        state: ReminderState,
        now: datetime,
        result: DueRulesResult,
    ) -> None:
        """Create initial state for a rule that has never been evaluated."""
        self._logger.info(f"Rule has no state, calculating initial next run time: rule={rule.name}")

        try:
            next_run = self.get_next_run_time(rule.cron, now)
        except CronError as e:
            error_msg = f"Failed to calculate initial next run time for rule {rule.name}: {e}"
            self._logger.warning(error_msg)
            result.errors.append(error_msg)
            return

        state.set(
            RuleState(
                name=rule.name,
                cron_expr=rule.cron,
                timezone=self.timezone_name,
                last_run_time=None,
                next_run_time=next_run,
            )
        )
        self._logger.info(f"Created initial state: rule={rule.name}, next_run={next_run}")

    def _refresh_changed_rule(
        self,
        rule: Rule,
        rule_state: RuleState,
        state: ReminderState,
        now: datetime,
        result: DueRulesResult,
    ) -> None:
        """Recalculate the next run time for a rule whose schedule changed."""
        self._logger.info(
            f"Schedule changed, recalculating next run time: rule={rule.name}, "
            f"old_cron={rule_state.cron_expr!r}, new_cron={rule.cron!r}, "
            f"old_timezone={rule_state.timezone}, new_timezone={self.timezone_name}"
        )

        try:
            next_run = self.get_next_run_time(rule.cron, now)
        except CronError as e:
            error_msg = f"Failed to calculate next run time for updated rule {rule.name}: {e}"
            self._logger.warning(error_msg)
            result.errors.append(error_msg)
            return

        state.set(
            RuleState(
                name=rule.name,
                cron_expr=rule.cron,
                timezone=self.timezone_name,
                last_run_time=rule_state.last_run_time,
                next_run_time=next_run,
            )
        )
        self._logger.info(f"Updated state for cron change: rule={rule.name}, next_run={next_run}")

    def update_rule_state(
        self,
        state: ReminderState,
        rule_name: str,
        cron_expr: str,
        run_time: datetime,
    ) -> RuleState:
        """Record a run and schedule the next one.

        The state is only written once the next run time is known, so a
        failure leaves the rule's previous state (and due-ness) intact.

        :param state: Run-state to update. Mutated in place.
        :param rule_name: Name of the rule that ran.
        :param cron_expr: The rule's current cron expression.
        :param run_time: When the rule ran. Must be timezone-aware.
        :returns: The new state for the rule.
        :raises CronError: If the next run time cannot be calculated.
        """
        run_time = _as_utc(run_time, "run_time")
        next_run = self.get_next_run_time(cron_expr, run_time)

        rule_state = RuleState(
            name=rule_name,
            cron_expr=cron_expr,
            timezone=self.timezone_name,
            last_run_time=run_time,
            next_run_time=next_run,
        )
        state.set(rule_state)

        self._logger.info(
            f"Updated rule state: rule={rule_name}, cron={cron_expr!r}, "
            f"last_run={run_time}, next_run={next_run}"
        )
        return rule_state
