"""Log setup: JSON lines in production, plain text elsewhere."""
import logging
import sys

from pythonjsonlogger import jsonlogger

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging() -> None:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if settings.APP_ENV == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                LOG_FORMAT,
                rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
            )
        )
        logging.root.handlers = [handler]
        logging.root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)

    # Per-row import failures are logged by app.imports; keep SQL echo out of them.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
