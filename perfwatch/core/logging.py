"""Logging utilities for the perfwatch engine and its HTTP surface."""
import logging
import sys

from perfwatch.core.config import Settings
from perfwatch.core.session_context import log_fields


def configure_logging(
    settings: Settings, *,
    logger_name: str = "perfwatch",
) -> logging.Logger:
    """Configure the root logger and return the application logger.

    Args:
        settings: Application settings containing log-level information.
        logger_name: Name of the logger to retrieve.

    Returns:
        Configured logger instance.
    """

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - session=%(session_id)s request=%(request_id)s - %(message)s"
        ),
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs) -> logging.LogRecord:
        record = old_factory(*args, **kwargs)
        for key, value in log_fields().items():
            setattr(record, key, value)
        return record

    logging.setLogRecordFactory(record_factory)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    logger.debug("Logging configured with level %s", logging.getLevelName(log_level))
    return logger
