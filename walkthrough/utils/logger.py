"""Per-run logging for the walkthrough CLI, driven by LoggingSettings."""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:  # pragma: no cover - import guard for typing
    from walkthrough.core.settings import LoggingSettings

TEXT_FORMAT = "%(asctime)s | %(levelname)-7s | %(run_type)s | %(run_id)s | %(name)s | %(message)s"


class RunFilter(logging.Filter):
    """Stamp the run id and command onto every record."""

    def __init__(self, run_id: str, run_type: str) -> None:
        super().__init__()
        self.run_id = run_id
        self.run_type = run_type

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - logging API
        record.run_id = self.run_id
        record.run_type = self.run_type
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - logging API
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "run_id": getattr(record, "run_id", "-"),
            "run_type": getattr(record, "run_type", "-"),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def new_run_id(command: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    return f"{command}-{stamp}-{os.urandom(3).hex()}"


def run_log_path(settings: "LoggingSettings", run_type: str, run_id: str) -> Path:
    return Path(settings.log_dir).resolve() / run_type / f"{run_id}.log"


def setup_logging(settings: "LoggingSettings", *, run_type: str, run_id: Optional[str] = None) -> Path:
    """Send root logging to stdout and ``<log_dir>/<run_type>/<run_id>.log``.

    ``settings`` is already validated, so level and format are taken as-is.
    Returns the log file path.
    """
    run_id = run_id or new_run_id(run_type)
    file_path = run_log_path(settings, run_type, run_id)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    formatter: logging.Formatter
    if settings.format == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    run_filter = RunFilter(run_id, run_type)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(settings.level)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout), logging.FileHandler(file_path, encoding="utf-8")]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(run_filter)
        root.addHandler(handler)
    return file_path


__all__ = ["JSONFormatter", "RunFilter", "new_run_id", "run_log_path", "setup_logging"]
