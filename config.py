import logging
import os
from logging.config import dictConfig

import pytz

BASE_URL = "https://codeforces.com/api"

CACHE_TTL_SECONDS = 5 * 60
MIN_REQUEST_INTERVAL = 2.0  # seconds between outgoing requests
DEFAULT_PAGE_SIZE = 10000
REQUEST_TIMEOUT = 10

USER_FILE = os.getenv("CF_USER_FILE", "users.txt")
LOG_LEVEL = os.getenv("CF_LOG_LEVEL", "INFO")

# None means the local zone of the process
DEFAULT_TIMEZONE = pytz.timezone(os.environ["CF_TIMEZONE"]) if os.getenv("CF_TIMEZONE") else None


def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level,
        },
    })
    return logging.getLogger("cf_tracker")
