# --------------------------------------------------------------
#  logging_config.py
# --------------------------------------------------------------
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from treehighlight.config import HighlightConfig

PACKAGE_LOGGER = "treehighlight"
LOG_FILE_NAME = "treehighlight.log"


def configure_logging(
    level: Optional[Union[int, str]] = None,
    log_dir: Optional[Path] = None,
    config: Optional[HighlightConfig] = None,
) -> logging.Logger:
    """Attach both *file* and *console* handlers to the package logger.

    *   **File handler** - plaintext ``treehighlight.log`` (rotates at 1 MB,
        keeps 3 backups).
    *   **Console handler** - human-readable output at the configured level.

    Calling this more than once does not stack handlers.
    """
    config = config or HighlightConfig()
    level = level if level is not None else config.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    log_dir = Path(log_dir) if log_dir is not None else config.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates on reconfigure
    for handler in list(package_logger.handlers):
        if isinstance(handler, (RotatingFileHandler, logging.StreamHandler)):
            package_logger.removeHandler(handler)
            handler.close()

    # -------- File handler (rotating) --------
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "%Y-%m-%d %H:%M:%S",
        )
    )

    # -------- Console handler --------
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "%H:%M:%S",
        )
    )

    package_logger.addHandler(file_handler)
    package_logger.addHandler(console_handler)
    package_logger.propagate = False

    package_logger.info(f"Logging configured. Log file: {log_file}")
    return package_logger
