"""
Package-level logging configuration.

* Rich console output (colourised, nicely formatted).
* Rotating log file inside ``<root>/.fmrimatic/logs/`` when a root is known
  (or ``$FMRIMATIC_LOG_DIR`` when set).
* Optional plain-text mirror controlled via ``--save-logfile`` on the CLI.

The public helper :func:`setup_logging` wires everything and should be the
sole entry-point used by the CLI.
"""

from __future__ import annotations

import atexit
import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

import structlog
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer as StructlogConsoleRenderer
from structlog.stdlib import LoggerFactory

__all__ = ["setup_logging", "log_dir_for"]


# --------------------------------------------------------------------------- #
# Internal helpers – file-based handlers                                      #
# --------------------------------------------------------------------------- #
def log_dir_for(root: Path | None) -> Path:
    """Return the directory that receives the rotating log file.

    Args:
        root: Data root of the current session, if already known.

    Returns:
        ``$FMRIMATIC_LOG_DIR`` when set, ``<root>/.fmrimatic/logs`` when a
        root is known, otherwise the package-local ``logs/`` folder.
    """
    env_dir = os.environ.get("FMRIMATIC_LOG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    if root is not None:
        return root / ".fmrimatic" / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _rotating_file_handler(root: Path | None, level: int) -> logging.Handler:
    """Return a rotating file handler below :func:`log_dir_for`."""
    logdir = log_dir_for(root)
    logdir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=logdir / "fmrimatic.log",
        maxBytes=5_000_000,  # ~5 MB before rollover
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s:%(name)s: %(message)s")
    )
    return handler


def _plain_text_file_handler(path: Optional[Path], level: int) -> logging.Handler | None:
    """Return a plain-text file handler or *None* when *path* is *None*."""
    if path is None:
        return None

    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8", mode="a")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    # Ensure the buffer is flushed on interpreter exit.
    atexit.register(handler.close)
    return handler


# --------------------------------------------------------------------------- #
# Public API – main entry-point                                               #
# --------------------------------------------------------------------------- #
def setup_logging(
    *,
    root: Path | None = None,
    verbose: bool = False,
    debug: bool = False,
    extra_text_log: Optional[Path] = None,
) -> None:
    """Configure rich console logging and file mirrors.

    Args:
        root: Data root used to determine the log location.
        verbose: Emit INFO-level messages to the console.
        debug: Emit DEBUG-level messages to the console and the log file.
        extra_text_log: Optional path for a plain-text mirror of console output.
    """
    console_lvl = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    file_lvl = logging.DEBUG if debug else logging.INFO

    handlers: list[logging.Handler] = [
        RichHandler(
            level=console_lvl,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=False,
        ),
        _rotating_file_handler(root, file_lvl),
    ]

    txt_handler = _plain_text_file_handler(extra_text_log, console_lvl)
    if txt_handler:
        handlers.append(txt_handler)

    logging.basicConfig(
        level=logging.DEBUG,  # root logger stays at DEBUG
        handlers=handlers,
        format="%(message)s",  # Rich/structlog handle formatting
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                StructlogConsoleRenderer(colors=False)
                if verbose or debug
                else structlog.processors.KeyValueRenderer(
                    key_order=["event"], sort_keys=True
                )
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(file_lvl),
        logger_factory=LoggerFactory(),
    )
