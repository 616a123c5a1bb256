import logging

import sentry_sdk

from gitlab_stats.settings import Settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app_settings: Settings) -> None:
    """Configure root logging from the LOG_LEVEL setting."""

    logging.basicConfig(level=app_settings.log_level.upper(), format=LOG_FORMAT)
    logging.getLogger("gitlab_stats").setLevel(app_settings.log_level.upper())


def init_sentry(app_settings: Settings) -> None:
    """Initialize Sentry SDK when DSN is configured."""

    if not app_settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=app_settings.sentry_dsn,
        environment=app_settings.environment,
        release=app_settings.release,
        traces_sample_rate=app_settings.sentry_traces_sample_rate,
        send_default_pii=False,
    )
