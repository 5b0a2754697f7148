"""
Structured logging for MemberHub using structlog.

Every line is a JSON object stamped with the service and environment.
Webhook code binds delivery_id, order_id and customer_email through
get_logger() so one delivery can be followed across the pipeline.
"""
import structlog
import logging
import sys

from memberhub.config import settings


def _add_service_context(logger, method_name, event_dict):
    event_dict.setdefault("service", settings.APP_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def configure_logging():
    """Configure structlog for JSON output at LOG_LEVEL."""
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    # SQLAlchemy, uvicorn and arq log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_service_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


logger = configure_logging()


def get_logger(**context):
    """
    Get a logger with delivery context bound.

    Usage:
        log = get_logger(delivery_id=delivery_id, order_id=event.order_id)
        log.info("webhook_processed", result=message)
    """
    return logger.bind(**context)
