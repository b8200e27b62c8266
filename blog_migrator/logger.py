# File: blog_migrator/logger.py
"""Logging for **BlogMigrator**.

Every module logs through the ``"BlogMigrator"`` logger, either the shared
:data:`logger` instance or ``logging.getLogger(LOGGER_NAME)``. Records go to
stderr so that stdout stays free for command output (counts, JSON config);
a rotating log file is added when the run config or the CLI names one.

The CLI calls :func:`init_logging` once the config is loaded::

    init_logging(cfg, level="DEBUG")   # CLI flags win over the config file
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Final, Optional, Union

if TYPE_CHECKING:
    from blog_migrator.config import MigratorConfig

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "BlogMigrator"
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace the handlers of the project logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Also write to this file, rotated at 5 MB with 3 backups.
    log_format
        Format string shared by every handler.
    """
    formatter = logging.Formatter(log_format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=str(log_file),
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )

    lg = logging.getLogger(LOGGER_NAME)
    for old in lg.handlers[:]:
        lg.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        lg.addHandler(handler)
    lg.setLevel(level)
    lg.propagate = False
    return lg


def init_logging(
    config: Optional[MigratorConfig] = None,
    *,
    level: Optional[_LevelT] = None,
    log_file: Optional[Union[str, Path]] = None,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """Apply the logging settings of *config*; explicit arguments take precedence."""
    return configure(
        level=level or (config.log_level if config else "INFO"),
        log_file=log_file or (config.log_file if config else None),
        log_format=log_format or (config.log_format if config else DEFAULT_FORMAT),
    )


logger: logging.Logger = configure()

__all__ = ["logger", "configure", "init_logging", "LOGGER_NAME", "DEFAULT_FORMAT"]
