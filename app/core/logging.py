import structlog
import logging
from typing import Any, Dict
from app.core.config import settings

REDACTED_KEYS = ("password", "credentials", "token")


def redact_secrets(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Never let credentials reach a log line."""
    for key in REDACTED_KEYS:
        if key in event_dict:
            event_dict[key] = "***"
    return event_dict


def setup_logging():
    logging.basicConfig(
        level=logging.INFO if not settings.DEBUG else logging.DEBUG,
        format='%(message)s'
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_secrets,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.INFO if not settings.DEBUG else logging.DEBUG
        ),
        logger_factory=structlog.PrintLoggerFactory(),
    )

logger = structlog.get_logger()
