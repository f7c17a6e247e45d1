"""Logging setup for applications using sheets_table."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_CONFIGURED = False


def configure_logging(
    level: int = logging.INFO,
    log_path: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Attach a handler to the ``sheets_table`` logger.

    Parameters
    ----------
    level:
        Minimum level for the package logger. ``logging.DEBUG`` also records
        every Sheets API call issued.
    log_path:
        Optional file to write to.  Logs go to stderr when omitted.

    Returns
    -------
    logging.Logger
        The package logger.  Calling this again only adjusts the level.
    """

    global _CONFIGURED

    package_logger = logging.getLogger("sheets_table")
    package_logger.setLevel(level)
    if _CONFIGURED:
        return package_logger

    if log_path is not None:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)

    _CONFIGURED = True
    package_logger.debug("Logging configured")
    return package_logger


__all__ = ["LOG_FORMAT", "configure_logging"]
