"""
Centralized Observability Infrastructure.
Provides structured logging setup and Sentry SDK initialization
governed entirely by environment variables.
"""

import os
import logging
import re
from typing import Any, Dict

log = logging.getLogger(__name__)

# Auth material that must never leave the process: codes, tokens, state values
SENSITIVE_PATTERNS = [
    re.compile(r"((?:code|state|access_token|refresh_token|id_token|code_verifier)=)[^&\s\"']+", re.IGNORECASE),
    re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"()[a-zA-Z0-9_\-]{30,}"),  # long opaque tokens
]


def mask_sensitive(val: str) -> str:
    for pattern in SENSITIVE_PATTERNS:
        val = pattern.sub(r"\1[REDACTED]", val)
    return val


class RedactingFilter(logging.Filter):
    """Scrubs auth material from log records before any handler sees them."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_sensitive(record.getMessage())
        record.args = ()
        return True


def _scrub_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sentry before_send hook. Recursively scrubs tokens and authorization
    codes from the event before it leaves the process.
    """

    def _recursive_scrub(obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: _recursive_scrub(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [_recursive_scrub(i) for i in obj]
        elif isinstance(obj, str):
            return mask_sensitive(obj)
        return obj

    for key in ("exception", "request", "breadcrumbs", "extra", "logentry"):
        if key in event:
            event[key] = _recursive_scrub(event[key])
    return event


def setup_observability() -> None:
    """
    Initializes global system logging and Sentry (if DSN is present).
    Should be called once at application startup.
    """

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    # Complete format: 2026-02-27 15:00:00 | INFO    | module.name | The message
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    redacting = RedactingFilter()
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(redacting)

    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        import sentry_sdk
        sentry_env = os.getenv("SENTRY_ENV", "development")

        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=sentry_env,
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
            send_default_pii=False,
            before_send=_scrub_sensitive_data
        )
        log.info(f"Sentry SDK initialized (env: {sentry_env})")
    else:
        log.info("SENTRY_DSN not provided. Running without Sentry.")

    # Quiet down noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
