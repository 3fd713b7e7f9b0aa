import logging.config
import os

from formbuilder.core.config.settings import Settings


def setup_logging(settings: Settings):
    """Configure logging settings for the application"""
    log_dir = settings.LOG_DIR
    level = settings.LOG_LEVEL.upper()

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        },
    }
    app_handlers = ["console"]
    error_handlers = ["console"]

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": os.path.join(log_dir, "app.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }
        handlers["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": os.path.join(log_dir, "error.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }
        app_handlers.append("file")
        error_handlers.append("error_file")

    LOGGING_CONFIG = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {  # Root logger
                "handlers": app_handlers,
                "level": level,
            },
            "formbuilder": {
                "handlers": app_handlers,
                "level": level,
                "propagate": False,
            },
            "formbuilder.errors": {
                "handlers": error_handlers,
                "level": "WARNING",
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(LOGGING_CONFIG)
    return logging.getLogger("formbuilder")
