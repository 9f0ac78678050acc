"""Logging configuration for the MCP server and CLI.

All records go to stderr. In stdio mode stdout carries the MCP JSON-RPC
stream, so nothing else may write there.
"""

import json
import logging
import sys
from datetime import UTC, datetime

TEXT_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "info", log_format: str = "text") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Level name, case-insensitive (debug, info, warning, error).
        log_format: "text" or "json".
    """
    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)
    # Ensure our application loggers are captured
    logging.getLogger("src").setLevel(numeric_level)
    # httpx logs every request at INFO; keep it out of the way
    logging.getLogger("httpx").setLevel(logging.WARNING)
