"""Structured logging configuration for the chunk scoring service."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# Record attributes copied into JSON output when passed via `extra=`
CONTEXT_FIELDS = ("chunk_count", "query_count", "unassigned_count", "char_count")


class JSONFormatter(logging.Formatter):
    """Renders each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Set up root logging with either plain text or JSON output.

    Safe to call more than once; handlers installed by a previous call are
    replaced rather than stacked.
    """
    handler = logging.StreamHandler()
    handler._chunkscope_handler = True
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if getattr(existing, "_chunkscope_handler", False):
            root_logger.removeHandler(existing)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.addHandler(handler)
