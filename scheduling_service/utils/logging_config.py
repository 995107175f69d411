import logging
import sys

from scheduling_service.config.settings import get_settings

# One line per HTTP request, written by the access-log middleware in main.py
ACCESS_LOGGER = "scheduling_service.access"


def setup_logging():
    """Configure application-wide logging."""
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # Access lines stay on at INFO even in debug mode; uvicorn's own access log
    # would duplicate them
    logging.getLogger(ACCESS_LOGGER).setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("slowapi").setLevel(logging.WARNING if not settings.debug else logging.INFO)

    return root_logger
