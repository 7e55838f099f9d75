"""Sentry configuration for error monitoring and alerting."""

import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from kickabout.core.config import Settings

logger = logging.getLogger(__name__)


def init_sentry(config: Settings) -> bool:
    """Initialize Sentry SDK when a DSN is configured.

    Events are only sent from production; other environments initialize the
    SDK disabled so integrations behave the same everywhere.

    Returns:
        True if the SDK was initialized.
    """
    if not config.sentry_dsn:
        logger.info("SENTRY_DSN not set, Sentry disabled")
        return False

    sentry_sdk.init(
        dsn=config.sentry_dsn,
        environment=config.app_env,
        release=f"kickabout@{config.app_version}",
        traces_sample_rate=0.1 if config.is_production else 1.0,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        # Emails and password hashes never leave the process
        send_default_pii=False,
        enabled=config.is_production,
    )

    logger.info("Sentry initialized for environment: %s", config.app_env)
    return True
