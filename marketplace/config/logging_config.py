# marketplace/config/logging_config.py

"""Per-run timestamped logging configuration for the listing page.

Each application launch creates a dedicated log file inside ``logs/``,
named with the launch timestamp (e.g. ``logs/run_20261018_153045.log``).
All ``marketplace.*`` loggers route through this file handler, so fetch
failures swallowed by the page controller still leave a full traceback
behind. Supabase keys are masked before any record is written.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from marketplace.config.settings import Settings

# Reusable format strings --------------------------------------------------

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_REDACTED = "***"


class _RedactKeys(logging.Filter):
    """Mask the configured Supabase keys in log messages.

    Request errors can echo headers or URLs back, and the service role
    key bypasses row level security.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        secrets = [
            key
            for key in (
                Settings.SUPABASE_ANON_KEY,
                Settings.SUPABASE_SERVICE_ROLE_KEY,
            )
            if key
        ]
        if not secrets:
            return True
        message = record.getMessage()
        for key in secrets:
            message = message.replace(key, _REDACTED)
        record.msg = message
        record.args = None
        return True


def setup_logging(console: bool = True) -> Path:
    """Initialise the root ``marketplace`` logger for the current run.

    Args:
        console: Also echo warnings to stderr. The TUI passes ``False``
            because stderr output would tear through the screen.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    root_logger = logging.getLogger("marketplace")
    root_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on repeated calls (e.g. tests)
    if root_logger.handlers:
        return log_file

    # --- File handler (DEBUG+) ----------------------------------------------
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )
    file_handler.addFilter(_RedactKeys())
    root_logger.addHandler(file_handler)

    # --- Console handler (WARNING+) -----------------------------------------
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(
            logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
        )
        console_handler.addFilter(_RedactKeys())
        root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised, log file: %s", log_file)

    return log_file
