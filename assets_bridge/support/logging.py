"""Logging infrastructure for the bridge.

Configures console output and a rotating file (1MB x3) on a root
`assets_bridge` logger and exposes `get_logger` for submodules.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


ROOT_LOGGER = "assets_bridge"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False
_file_handler: Optional[logging.Handler] = None


def _log_dir() -> str:
    # Prefer user home dir; editors often run from read-only install folders
    base = os.path.join(os.path.expanduser("~"), ".assets_bridge", "logs")
    try:
        os.makedirs(base, exist_ok=True)
        return base
    except OSError:
        base = os.path.join(os.getcwd(), "logs")
        os.makedirs(base, exist_ok=True)
        return base


def _make_file_handler(path: Union[str, Path]) -> Optional[logging.Handler]:
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(str(path), maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    except OSError:
        return None
    fh.setFormatter(logging.Formatter(_FORMAT))
    return fh


def _configure_once() -> None:
    global _configured, _file_handler
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.INFO)

    sh = logging.StreamHandler(stream=sys.stderr)
    sh.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(sh)

    _file_handler = _make_file_handler(os.path.join(_log_dir(), "bridge.log"))
    if _file_handler is not None:
        root.addHandler(_file_handler)
    _configured = True


def configure(level: str = "INFO", file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Apply level and log file from settings to the root bridge logger.

    Args:
        level: Level name (DEBUG, INFO, ...). Unknown names fall back to INFO.
        file: Optional log file path replacing the default rotating file.

    Returns:
        logging.Logger: The root bridge logger.
    """

    global _file_handler
    _configure_once()
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if file is not None:
        new_handler = _make_file_handler(file)
        if new_handler is not None:
            if _file_handler is not None:
                root.removeHandler(_file_handler)
                _file_handler.close()
            _file_handler = new_handler
            root.addHandler(new_handler)
    return root


def get_logger(name: str) -> logging.Logger:
    _configure_once()
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
