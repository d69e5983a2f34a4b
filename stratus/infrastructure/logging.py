"""
Centralized Logging

Architectural Intent:
- One handler on the "stratus" logger for every layer
- Records carry run context (run id, phase, resource, host) supplied by
  the use cases through `extra=`; both formatters surface it
- JSON lines for machine consumption, tagged text lines for humans
- Level chosen by CLI flags (--verbose, --debug) or config log_level
"""

import json
import logging
import sys
from datetime import datetime, UTC

CONTEXT_FIELDS = ("run_id", "phase", "resource_kind", "resource", "host")
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
QUIET_LIBRARIES = ("paramiko", "invoke", "fabric")


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """Run context fields present on a record, in display order."""
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value not in (None, ""):
            context[name] = value
    return context


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(record_context(record))
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


class ContextFormatter(logging.Formatter):
    """Text lines suffixed with the record's run context, e.g. `{run_id=ab12 phase=configure}`."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        tags = " ".join(f"{k}={v}" for k, v in context.items())
        return f"{line} {{{tags}}}"


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
) -> None:
    """Configure logging for Stratus.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, etc.)
        json_format: If True, use JSON structured output. Otherwise human-readable.
    """
    root = logging.getLogger("stratus")
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else ContextFormatter())
    root.addHandler(handler)

    # SSH transport chatter only at --debug
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(
            level if level <= logging.DEBUG else logging.WARNING
        )
