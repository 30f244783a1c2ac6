"""
Structured logging configuration.

Uses structlog for JSON-formatted logs. Every event carries the request
correlation ID bound by the HTTP middleware and, once the session is known,
the connected account it acts on.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from pythonjsonlogger import jsonlogger

from treasury_demo.config import Settings, get_settings


class AppContextProcessor:
    """
    Add application context to log events.

    Demo mode is included so fabricated KYC data and forced settlements can
    be told apart from real traffic in the logs.
    """

    def __init__(self, settings: Settings) -> None:
        self.context = {
            "app_name": settings.app_name,
            "app_env": settings.app_env,
            "demo_mode": settings.demo_mode,
        }

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        for key, value in self.context.items():
            event_dict.setdefault(key, value)
        return event_dict


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging with JSON formatter.

    Called by create_app, so every process that builds the app logs JSON.
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            AppContextProcessor(settings),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    json_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "@timestamp", "levelname": "level", "name": "logger"},
        )
    )
    root_logger.addHandler(json_handler)

    # Stripe's SDK logs every request at DEBUG
    logging.getLogger("stripe").setLevel(logging.INFO)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
