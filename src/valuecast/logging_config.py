import copy
import logging
import logging.config
import os


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "INFO",
            "stream": "ext://sys.stderr",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join("logs", "valuecast.log"),
            "maxBytes": 10_485_760,
            "backupCount": 5,
            "formatter": "standard",
            "level": "DEBUG",
        },
    },
    "root": {
        "level": "DEBUG",
        "handlers": ["console", "file"],
    },
}


def setup_logging(log_dir: str = "logs", console_level: str = "INFO"):
    os.makedirs(log_dir, exist_ok=True)
    config = copy.deepcopy(LOGGING_CONFIG)
    config["handlers"]["file"]["filename"] = os.path.join(log_dir, "valuecast.log")
    config["handlers"]["console"]["level"] = console_level.upper()
    logging.config.dictConfig(config)
