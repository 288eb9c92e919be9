import json
import logging
import sys
from datetime import datetime, timezone

from flask.logging import default_handler

HANDLER_NAME = "content-engine-json"


class StructuredFormatter(logging.Formatter):
    """One JSON object per line on stdout."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def _structured_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    handler.set_name(HANDLER_NAME)
    return handler


def configure_logging(app) -> None:
    """
    JSON logs on stdout for the app logger. app.name is the package name, so
    editor module loggers (content_engine.editor.*) propagate here too.
    """
    logger = app.logger
    logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logger.removeHandler(default_handler)

    # create_app may run many times in one process (tests).
    if not any(h.get_name() == HANDLER_NAME for h in logger.handlers):
        logger.addHandler(_structured_handler())

    logging.getLogger("urllib3").setLevel(logging.WARNING)
