"""
Logging setup for SiteScene entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers; the CLI
and the API server call ``setup_logging`` once at start-up. Level and log
directory come from settings (``SITESCENE_LOG_LEVEL``, ``SITESCENE_LOG_DIR``).

Session context passed through ``extra`` (dataset, generation, state,
error_kind) is appended to console lines and stored as fields in log files:

    logger.info("Loaded site", extra={"dataset": "site.geojson", "generation": 2})
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from ..core.config import settings

CONTEXT_KEYS = ("dataset", "generation", "state", "error_kind")

# Third-party loggers kept at WARNING
QUIET_LOGGERS = ("pyproj", "httpx", "uvicorn.access")


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_KEYS if hasattr(record, key)}


class ContextFormatter(logging.Formatter):
    """Console formatter: the message followed by any session context."""

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        context = _context(record)
        if context:
            pairs = ", ".join(f"{key}={value}" for key, value in context.items())
            formatted = f"{formatted} [{pairs}]"
        return formatted


class JSONLineFormatter(logging.Formatter):
    """File formatter: one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def default_log_file() -> Path:
    """Daily log file under the configured log directory."""
    return Path(settings.log_dir) / f"sitescene_{datetime.now():%Y%m%d}.log"


def setup_logging(
    level: Optional[str] = None,
    log_to_file: bool = False,
    log_file: Union[str, Path, None] = None,
) -> Optional[Path]:
    """
    Configure the root logger.

    Args:
        level: Log level name; defaults to ``settings.log_level``
        log_to_file: Also write JSON lines to a file
        log_file: File path; defaults to a daily file in ``settings.log_dir``

    Returns:
        Path of the log file, or None when only logging to the console
    """
    level_name = (level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(numeric_level)

    # stderr keeps command output on stdout clean
    console_handler = RichHandler(console=Console(stderr=True), show_path=False)
    console_handler.setFormatter(ContextFormatter("%(name)s | %(message)s"))
    console_handler.setLevel(numeric_level)
    root_logger.addHandler(console_handler)

    path = None
    if log_to_file:
        path = Path(log_file) if log_file is not None else default_log_file()
        path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(JSONLineFormatter())
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)
        # The file gets everything
        root_logger.setLevel(logging.DEBUG)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return path
