"""
Logging setup for the CHIP-8 VM front end.

Two handlers on the package logger:
  - a per-run log file, ``<log_dir>/<name>_YYYYMMDD_HHMMSS.log``, that
    keeps everything (DEBUG+, including instruction traces)
  - a rich console handler on stderr, quiet by default (WARNING+) so it
    does not fight the live screen

Library modules never configure logging themselves; they only do
``log = logging.getLogger(__name__)``. The CLI calls setup_logging() once
and passes the run's session details (program, platform, pacing), which
head the log file so a crash log says what was running.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import LOG_DIR

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s:%(lineno)d | %(message)s"
PLAIN_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"


def _file_handler(log_dir: Path, name: str) -> logging.FileHandler:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    handler = logging.FileHandler(str(log_dir / f"{name}_{stamp}.log"), encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _console_handler(level: int, rich_console: bool,
                     console: Optional[Console]) -> logging.Handler:
    if rich_console:
        # markup off: register dumps and opcodes contain '[' and ']'
        handler = RichHandler(
            level=level,
            console=console or Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(PLAIN_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    handler.setLevel(level)
    return handler


def setup_logging(
    name: str = "chip8_vm",
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_dir: Optional[Path] = None,
    rich_console: bool = True,
    console: Optional[Console] = None,
    session: Optional[Mapping[str, object]] = None,
) -> logging.Logger:
    """Configure and return the package logger.

    session: key/value pairs written under the file banner, e.g.
    ``{"program": "PONG", "platform": "chip8"}``.

    Calling it again returns the already-configured logger untouched.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_dir = Path(log_dir or LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = _file_handler(log_dir, name)
    logger.setLevel(level)
    logger.addHandler(file_handler)
    logger.addHandler(_console_handler(console_level, rich_console, console))

    logger.info("-" * 60)
    logger.info("chip8-vm session started, log file %s", file_handler.baseFilename)
    for key, value in (session or {}).items():
        logger.info("  %-16s %s", key, value)
    logger.info("  %-16s %s", "console level", logging.getLevelName(console_level))
    logger.info("-" * 60)

    return logger
