import sys
from logging.config import dictConfig

from templatex.core.config import settings

LOG_FORMAT = "%(levelprefix)s %(asctime)s [%(name)s] %(message)s"


def build_logging_config(level: str) -> dict:
    """dictConfig for the service: uvicorn-styled console output, access log on stdout.

    ``level`` applies to the ``templatex`` loggers only; uvicorn and
    third-party loggers stay at INFO.
    """
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": LOG_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "console", "stream": sys.stderr},
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": sys.stdout},
        },
        "root": {"handlers": ["console"], "level": "INFO"},
        "loggers": {
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "templatex": {"level": level},
        },
    }


def setup_logging(level: str | None = None) -> None:
    dictConfig(build_logging_config(level or settings.log_level))
