import logging
import logging.config
from pathlib import Path
from app.core.config import settings

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "default",
            "stream": "ext://sys.stdout"
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "INFO",
            "formatter": "detailed",
            "filename": "logs/app.log",
            "maxBytes": 10485760,
            "backupCount": 5
        },
        "error_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": "detailed",
            "filename": "logs/error.log",
            "maxBytes": 10485760,
            "backupCount": 5
        }
    },
    "root": {
        "level": "INFO",
        "handlers": ["console", "file", "error_file"]
    },
    "loggers": {
        "app": {
            "level": "INFO",
            "handlers": ["console", "file", "error_file"],
            "propagate": False
        },
        "app.services": {
            "level": "DEBUG",
            "handlers": ["console", "file", "error_file"],
            "propagate": False
        },
        "uvicorn.access": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False
        }
    }
}


def build_logging_config(log_dir: str, level: str, to_file: bool = True) -> dict:
    config = {
        **LOGGING_CONFIG,
        "handlers": {name: dict(handler) for name, handler in LOGGING_CONFIG["handlers"].items()},
        "root": dict(LOGGING_CONFIG["root"]),
        "loggers": {name: dict(logger) for name, logger in LOGGING_CONFIG["loggers"].items()},
    }
    file_handlers = ("file", "error_file")

    if to_file:
        for name in file_handlers:
            filename = Path(config["handlers"][name]["filename"]).name
            config["handlers"][name]["filename"] = str(Path(log_dir) / filename)
    else:
        for name in file_handlers:
            config["handlers"].pop(name)
        for section in [config["root"], *config["loggers"].values()]:
            section["handlers"] = [h for h in section["handlers"] if h not in file_handlers]

    config["handlers"]["console"]["level"] = level
    config["root"]["level"] = level
    config["loggers"]["app"]["level"] = level
    return config


def configure_logging():
    if settings.LOG_TO_FILE:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(
        build_logging_config(settings.LOG_DIR, settings.LOG_LEVEL.upper(), settings.LOG_TO_FILE)
    )
