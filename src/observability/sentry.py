"""Setup Sentry."""

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration


def init_sentry() -> bool:
    """Initialise Sentry if SENTRY_DSN is set.

    :returns: True if Sentry was initialised.
    """
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return False

    # Capture ERROR logs as events, and keep INFO+ as breadcrumbs
    logging_integration = LoggingIntegration(
        level=logging.INFO,
        event_level=logging.ERROR,
    )

    sentry_sdk.init(
        dsn=dsn,
        integrations=[logging_integration],
        environment=os.environ.get("APP_ENV", "local"),
        send_default_pii=False,
        traces_sample_rate=0,
    )
    return True
