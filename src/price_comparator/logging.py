"""Console logging for the catalog, the import service, the API and the CLI.

Every logger returned by get_logger() is a child of the ``price_comparator``
namespace logger, which alone owns the handlers. LOG_LEVEL (default INFO)
and LOG_FILE are read once, when the first logger is requested; the CLI can
raise or lower the level afterwards with set_level().
"""

import logging
import os
from typing import Optional, Union

ROOT_LOGGER = "price_comparator"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _coerce_level(value: Union[str, int, None]) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip():
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return logging.INFO


def _namespace_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root

    root.setLevel(_coerce_level(os.environ.get("LOG_LEVEL")))
    root.propagate = False
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            root.warning(f"Cannot open LOG_FILE {log_file!r} ({exc}); logging to console only")
        else:
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``price_comparator.<name>``; handlers live on the namespace logger."""
    _namespace_logger()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_level(level: Optional[Union[str, int]]) -> int:
    """Change the level for every project logger and return the numeric level."""
    numeric = _coerce_level(level)
    _namespace_logger().setLevel(numeric)
    return numeric
