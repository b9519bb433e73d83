"""Centralised logging configuration for the TutorApp backend."""

import logging.config


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single console handler."""
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s]: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    }
    logging.config.dictConfig(logging_config)
