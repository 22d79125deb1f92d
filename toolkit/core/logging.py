import sys
from logging.config import dictConfig
from typing import Any

from toolkit.core.config import settings

DEFAULT_FORMAT = "%(levelprefix)s %(asctime)s [%(name)s] %(message)s"
ACCESS_FORMAT = '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s'


def build_logging_config(level: str) -> dict[str, Any]:
    """Uvicorn-compatible dictConfig; ``level`` applies to the toolkit loggers only."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": DEFAULT_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": ACCESS_FORMAT,
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stderr,
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": sys.stdout,
            },
            "toolkit": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "root": {"handlers": ["stderr"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["stderr"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "toolkit": {"handlers": ["toolkit"], "level": level.upper(), "propagate": False},
        },
    }


def setup_logging(level: str | None = None) -> None:
    """Configures application-wide logging using dictConfig."""
    dictConfig(build_logging_config(level or settings.log_level))
