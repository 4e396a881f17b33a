"""
Centralized Logging

Architectural Intent:
- Provides structured JSON logging for all stagecoach components
- Centralizes log configuration to avoid scattered print() calls
- Supports configurable log levels via CLI flags (--verbose, --debug)
- Registers a NOTICE level between INFO and WARNING for stage banners
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Any

NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        deployment = getattr(record, "deployment", None)
        if deployment:
            log_entry["deployment"] = deployment
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


class DeploymentLogger(logging.LoggerAdapter):
    """Log sink handed to tasks through the deployment.

    Adds ``notice`` and tags every record with the deployment name.
    """

    def __init__(self, deployment_name: str, logger: logging.Logger | None = None):
        super().__init__(
            logger or logging.getLogger("stagecoach.deployment"),
            {"deployment": deployment_name},
        )

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs.setdefault("extra", {}).update(self.extra)
        return f"[{self.extra['deployment']}] {msg}", kwargs

    def notice(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(NOTICE, msg, *args, **kwargs)


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
) -> None:
    """Configure logging for the stagecoach application.

    Args:
        level: Logging level (DEBUG, INFO, NOTICE, WARNING, etc.)
        json_format: If True, use JSON structured output. Otherwise human-readable.
    """
    root = logging.getLogger("stagecoach")
    root.setLevel(level)

    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )

    root.addHandler(handler)
