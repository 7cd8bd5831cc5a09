import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional


# Reserved LogRecord attributes that cannot be overwritten
_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno",
    "pathname", "filename", "module", "exc_info",
    "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process", "message",
    "taskName",
}

DEFAULT_LOG_FILE = os.path.join("logs", "app.log")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fields passed through extra= are merged into the object; values that
    json cannot encode are rendered with str().
    """

    def format(self, record: logging.LogRecord) -> str:

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():

            if key.startswith("_"):
                continue

            if key in _RESERVED_ATTRS:
                continue

            # Avoid overwriting existing fields
            if key in log_data:
                log_data[f"extra_{key}"] = value
            else:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = DEFAULT_LOG_FILE):

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    if log_file:

        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Silence noisy libs
    for name in ("urllib3", "httpx", "httpcore", "openai", "transformers"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_request_complete(logger, request_id, endpoint, latency_seconds, **kwargs):

    safe_extra = {
        "request_id": request_id,
        "endpoint": endpoint,
        "latency_seconds": round(latency_seconds, 3),
        **kwargs
    }

    logger.info(f"{endpoint}_completed", extra=safe_extra)


def log_request_error(logger, request_id, endpoint, error, **kwargs):

    safe_extra = {
        "request_id": request_id,
        "endpoint": endpoint,
        "error": str(error),
        "error_type": type(error).__name__,
        **kwargs
    }

    logger.error(
        f"{endpoint}_failed",
        extra=safe_extra,
        exc_info=True
    )
