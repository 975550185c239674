import logging

import sentry_sdk

from profile_dashboard.settings import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(app_settings: Settings) -> None:
    """Configure root logging once for the process."""

    level = logging.getLevelName(app_settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    logging.getLogger("profile_dashboard").setLevel(level)


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
