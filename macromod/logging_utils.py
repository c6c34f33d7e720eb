from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

_LOGGER = logging.getLogger("macromod.logging")
LOG_DIR_ENV = "MACROMOD_LOG_DIR"
LOG_FILE = "macromod.log"
_PACKAGE_LOGGER = "macromod"
_CONSOLE_FORMAT = "macromod %(levelname)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class _MacromodHandler:
    """Marks handlers owned by ``configure_logging`` so a rerun can replace them."""


class _ConsoleHandler(logging.StreamHandler, _MacromodHandler):
    pass


class _FileHandler(logging.FileHandler, _MacromodHandler):
    pass


def default_log_dir() -> Path:
    """``$MACROMOD_LOG_DIR`` when set, else ``~/.cache/macromod/logs``."""
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "macromod" / "logs"


def configure_logging(*, debug: bool = False, log_dir: Path | None = None) -> Path | None:
    """Attach a stderr handler and a log file to the ``macromod`` logger.

    The console shows INFO and up (DEBUG with ``debug``); the file records
    everything, including tracebacks sent through :func:`log_exception`.
    Calling again swaps out the previous handlers. Returns the log file path,
    or None when the directory cannot be created.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, _MacromodHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.DEBUG)

    console = _ConsoleHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    path = (log_dir if log_dir is not None else default_log_dir()) / LOG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = _FileHandler(path, encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("File logging disabled: %s", exc)
        return None
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(file_handler)
    return path


def log_exception(context: str, exc: BaseException) -> None:
    """Record ``exc`` with its traceback at DEBUG.

    The log file always gets the traceback; the console only in debug mode.
    """
    _LOGGER.debug("%s failed: %s: %s", context, type(exc).__name__, exc, exc_info=exc)
