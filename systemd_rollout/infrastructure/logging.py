"""
Centralized Logging

Architectural Intent:
- One handler on the ``systemd_rollout`` logger, configured from CLI flags
  (--verbose, --debug, --json-logs)
- Records about one host carry a ``host`` attribute so both output formats
  can show which host a line belongs to
- Modules keep using ``logging.getLogger(__name__)``
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import IO, Optional

ROOT_LOGGER = "systemd_rollout"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(host)s %(name)s: %(message)s"
NO_HOST = "-"


class HostLoggerAdapter(logging.LoggerAdapter):
    """Tags every record with the host it concerns."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("host", self.extra["host"])
        kwargs["extra"] = extra
        return msg, kwargs


def host_logger(logger: logging.Logger, host: str) -> HostLoggerAdapter:
    return HostLoggerAdapter(logger, {"host": host})


class _HostDefaultFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "host", None):
            record.host = NO_HOST
        return True


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter, one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        host = getattr(record, "host", None)
        if host and host != NO_HOST:
            log_entry["host"] = host
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the rollout's log output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, etc.)
        json_format: Emit JSON lines instead of the human-readable format.
        stream: Destination, stderr by default so stdout stays for the
            console summary.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(_HostDefaultFilter())
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
