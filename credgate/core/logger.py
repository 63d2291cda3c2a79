import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

# Track if Sentry has been initialized (global singleton)
_sentry_initialized = False

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "password",
        "new_password",
        "password_hash",
        "otp",
        "code",
        "otp_token",
        "reset_token",
        "token",
        "secret",
        "api-key",
    }
)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def scrub_event(event: dict, hint: dict) -> dict:
    """
    Sentry ``before_send`` hook that strips credential material.

    Request bodies, headers and frame locals are walked recursively and any
    key naming a password, code, token or secret has its value replaced.

    Args:
        event (dict): The event Sentry is about to send.
        hint (dict): Extra context supplied by the SDK (unused).

    Returns:
        dict: The scrubbed event.
    """
    request = event.get("request")
    if isinstance(request, dict):
        for section in ("data", "headers", "cookies"):
            if section in request:
                request[section] = _redact(request[section])

    for exception in event.get("exception", {}).get("values", []):
        for frame in (exception.get("stacktrace") or {}).get("frames", []):
            if "vars" in frame:
                frame["vars"] = _redact(frame["vars"])

    return event


def init_sentry(
    dsn: str,
    environment: str = "development",
    traces_sample_rate: float = 1.0,
) -> bool:
    """
    Initialize Sentry SDK globally (should be called once at application startup).

    Args:
        dsn (str): Sentry DSN for error tracking. Empty disables Sentry.
        environment (str): Sentry environment name (development/production).
        traces_sample_rate (float): Performance monitoring sample rate (0.0 to 1.0).

    Returns:
        bool: True if Sentry was initialized, False if already initialized or no DSN.
    """
    global _sentry_initialized

    if _sentry_initialized or not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[
            # Breadcrumbs from INFO, events from ERROR
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            AsyncioIntegration(),
        ],
    )

    _sentry_initialized = True
    return True


def _build_handlers(log_file: str, level: int) -> list[logging.Handler]:
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        ),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logger(
    name: str,
    log_file: str,
    level: int = logging.INFO,
    sentry_tag: Optional[str] = None,
) -> logging.Logger:
    """
    Sets up a named logger writing to a rotating file and the console.

    Calling this twice for the same name returns the already configured
    logger without stacking handlers.

    Args:
        name (str): The name of the logger.
        log_file (str): The file path where the log messages will be written.
        level (int, optional): The logging level. Defaults to logging.INFO.
        sentry_tag (str, optional): Component tag in Sentry (e.g., "auth").

    Returns:
        logging.Logger: The configured logger instance.
    """
    if sentry_tag and _sentry_initialized:
        sentry_sdk.set_tag("component", sentry_tag)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        for handler in _build_handlers(log_file, level):
            logger.addHandler(handler)

    return logger
