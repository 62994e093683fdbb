"""
LMC Toolkit - Logging Setup

All modules log through ``logging.getLogger(__name__)`` under the ``lmc``
namespace; this module attaches the handlers once, from the CLI.

Console levels:
  default      ERROR only
  --verbose    INFO  (pass starts, program load, halt)
  --debug      DEBUG (every label, encoded word and executed instruction)

The console handler is a RichHandler on stderr so program output on
stdout stays clean. An optional log file captures DEBUG regardless of the
console level.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from .config import LOG_NAME

__all__ = ['setup_logging', 'console_level']


def console_level(verbose: bool = False, debug: bool = False) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.ERROR


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    log_file: Optional[Union[str, Path]] = None,
    name: str = LOG_NAME,
) -> logging.Logger:
    """Configure and return the package logger.

    Calling it again replaces the handlers, so the CLI can be driven more
    than once in one process (tests do this).
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)

    level = console_level(verbose, debug)

    # ── Console handler ──
    ch = RichHandler(
        level=level,
        console=Console(stderr=True),
        show_time=debug,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    ch.setLevel(level)
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)
        logger.debug("log file: %s", log_file)

    return logger
