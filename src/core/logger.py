import json
import logging
import logging.config
import sys

from core.config import configs


class JsonFormatter(logging.Formatter):
    """
    Formatter for logging in JSON format.
    """

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


# Third-party loggers that are too chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "PIL", "open_clip", "huggingface_hub")


def _build_config(formatter: str, formatter_config: dict, app_level: str, uvicorn_error_level: str) -> dict:
    handler = {
        "class": "logging.StreamHandler",
        "stream": sys.stdout,
        "formatter": formatter,
    }
    loggers = {
        # Root Logger: Catches everything not caught by specific loggers
        "root": {
            "level": configs.LOG_LEVEL,
            "handlers": ["console"],
        },
        # Application Loggers
        "app": {
            "level": app_level,
            "handlers": ["console"],
            "propagate": False,
        },
        "api": {
            "level": app_level,
            "handlers": ["console"],
            "propagate": False,
        },
        # Uvicorn (FastAPI Server) Loggers
        "uvicorn": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        },
        "uvicorn.access": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        },
        "uvicorn.error": {
            "level": uvicorn_error_level,
            "handlers": ["console"],
            "propagate": False,
        },
    }
    for name in _QUIET_LOGGERS:
        loggers[name] = {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {formatter: formatter_config},
        "handlers": {"console": handler},
        "loggers": loggers,
    }


# -----------------------------------------------------------------------------
# Development Logging Configuration
# -----------------------------------------------------------------------------
# Console-friendly, readable text format.
DEV_LOGGING_CONFIG = _build_config(
    "default",
    {
        "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    app_level="INFO",
    uvicorn_error_level="INFO",
)

# -----------------------------------------------------------------------------
# Production Logging Configuration
# -----------------------------------------------------------------------------
# JSON structured, machine-parsable, suitable for aggregation (ELK, CloudWatch, etc.)
PROD_LOGGING_CONFIG = _build_config(
    "json",
    {
        "()": JsonFormatter,
        "datefmt": "%Y-%m-%dT%H:%M:%S%z",
    },
    app_level=configs.LOG_LEVEL,
    uvicorn_error_level="ERROR",
)


def setup_logging():
    """
    Set up logging configuration based on the environment.
    """
    env = configs.ENVIRONMENT.lower()

    if env == "production":
        log_config = PROD_LOGGING_CONFIG
    else:
        log_config = DEV_LOGGING_CONFIG

    # Apply configuration
    logging.config.dictConfig(log_config)

    logger = logging.getLogger("app")
    logger.info(f"Logging setup complete for {env} environment with level {configs.LOG_LEVEL}")
