import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

# Logger
from support_directory.logging.utils import get_app_logger
logger = get_app_logger("sentry")

# Settings
from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()

SENSITIVE_HEADERS = ["authorization", "cookie", "x-api-key", "x-otp-token"]
SENSITIVE_FIELDS = ["password", "token", "secret", "otp", "code"]


def init_sentry():
    """Initialize Sentry SDK with flag-based configuration"""

    if not configs.SENTRY_ENABLED:
        logger.info("sentry_disabled")
        return

    if not configs.SENTRY_DSN:
        logger.warning("sentry_dsn_missing | SENTRY_ENABLED is true but SENTRY_DSN is not configured")
        return

    environment = configs.ENVIRONMENT

    sentry_sdk.init(
        dsn=configs.SENTRY_DSN,
        environment=environment,
        release=configs.SENTRY_RELEASE,
        traces_sample_rate=float(configs.SENTRY_TRACES_SAMPLE_RATE),
        profiles_sample_rate=float(configs.SENTRY_PROFILES_SAMPLE_RATE),
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(
                level=logging.INFO,        # breadcrumbs
                event_level=logging.ERROR  # events
            ),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        sample_rate=1.0,
        max_breadcrumbs=50,
        before_send=before_send_filter,
    )

    logger.info(f"sentry_initialized | environment={environment}")


def before_send_filter(event, hint):
    """Filter credentials, OTP codes and phone tokens before sending to Sentry"""

    request = event.get("request") or {}

    headers = request.get("headers")
    if isinstance(headers, dict):
        for key in list(headers.keys()):
            if key.lower() in SENSITIVE_HEADERS:
                headers[key] = "[Filtered]"

    query_string = request.get("query_string")
    if isinstance(query_string, str) and "otpToken" in query_string:
        request["query_string"] = "[Filtered]"

    data = request.get("data")
    if isinstance(data, dict):
        for key in list(data.keys()):
            if any(field in key.lower() for field in SENSITIVE_FIELDS):
                data[key] = "[Filtered]"

    return event


def capture_exception(exception, **kwargs):
    """Wrapper to capture exceptions only if Sentry is enabled"""
    if configs.SENTRY_ENABLED:
        sentry_sdk.capture_exception(exception, **kwargs)
    logger.error(f"exception_captured | error={exception}", exc_info=True)


def capture_message(message, level="info", **kwargs):
    """Wrapper to capture messages only if Sentry is enabled"""
    if configs.SENTRY_ENABLED:
        sentry_sdk.capture_message(message, level=level, **kwargs)
    else:
        getattr(logger, level.lower(), logger.info)(message)


def add_breadcrumb(message, category="custom", level="info", data=None):
    if configs.SENTRY_ENABLED:
        sentry_sdk.add_breadcrumb(
            message=message,
            category=category,
            level=level,
            data=data or {}
        )
