from __future__ import annotations

import logging
import logging.config

_configured = False


def configure_logging(level: str | int = "INFO") -> None:
    """
    Configure le logging racine (stream unique sur stderr).

    Idempotent : un second appel ne fait que changer le niveau.
    """
    global _configured

    if isinstance(level, str):
        level = level.upper()

    if _configured:
        logging.getLogger().setLevel(level)
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s %(name)s - %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": {
                # le SQL reste piloté par SQL_ECHO
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
    _configured = True
