from logging.config import dictConfig

from app.core.config import settings


def setup_logging(level: str | None = None) -> None:
    log_level = (level or settings.log_level).upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                },
            },
            "loggers": {
                "app": {"handlers": ["console"], "level": log_level, "propagate": False},
                "elastic_transport": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            },
            "root": {"handlers": ["console"], "level": log_level},
        }
    )
