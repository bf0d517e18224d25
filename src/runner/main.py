"""Command-line runner for evaluating reminders outside Lambda."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence

from dotenv import load_dotenv

from src.config.exceptions import ConfigError
from src.config.settings import get_reminder_settings
from src.enums import RunMode
from src.observability.sentry import init_sentry
from src.runner.handler import ReminderHandler, ReminderProcessingError, build_handler
from src.state.exceptions import StateStoreError
from src.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    :param argv: Arguments, defaulting to sys.argv.
    :returns: Parsed arguments.
    """
    parser = argparse.ArgumentParser(description="Evaluate cron-scheduled reminder rules.")
    parser.add_argument(
        "--mode",
        type=RunMode,
        choices=list(RunMode),
        default=RunMode.ONCE,
        help="Run a single pass, or loop on a fixed interval",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Local config path; blank means load from S3",
    )
    parser.add_argument(
        "--state-path",
        default=None,
        help="Local state path; blank means load from S3",
    )
    return parser.parse_args(argv)


def run_pass(handler: ReminderHandler) -> bool:
    """Run one pass, logging failures.

    :param handler: The reminder handler.
    :returns: True if the pass completed without errors.
    """
    try:
        handler.run()
    except ReminderProcessingError as e:
        logger.error(f"Handler error: {e}")
        return False
    except (ConfigError, StateStoreError) as e:
        logger.exception(f"Handler error: {e}")
        return False
    return True


def run_loop(handler: ReminderHandler, interval_seconds: int) -> int:
    """Run passes on a fixed interval until one fails.

    :param handler: The reminder handler.
    :param interval_seconds: Seconds between pass starts.
    :returns: Exit code.
    """
    while True:
        started = time.monotonic()
        if not run_pass(handler):
            return 1
        elapsed = time.monotonic() - started
        time.sleep(max(0.0, interval_seconds - elapsed))


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point.

    :param argv: Command-line arguments.
    :returns: Process exit code.
    """
    load_dotenv()
    configure_logging()
    init_sentry()

    args = parse_args(argv)
    settings = get_reminder_settings()
    logger.info(f"Starting: mode={args.mode}")

    handler = build_handler(settings, config_path=args.config, state_path=args.state_path)

    if args.mode == RunMode.LOOP:
        return run_loop(handler, settings.loop_interval_seconds)

    return 0 if run_pass(handler) else 1


if __name__ == "__main__":
    sys.exit(main())
