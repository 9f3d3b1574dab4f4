# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Logging configuration with file rotation for applications using figurekit.

The library itself only creates module loggers; call ``setup_logging`` from
an application entry point.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


def setup_logging(
    app_name: str = "FigureKit",
    console_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
) -> Path:
    """
    Configure logging with file rotation.

    Creates one log file:
    - figurekit.log: DEBUG+ messages from the figurekit package (5 MB per file, 3 rotations)

    Args:
        app_name: Application name for the default log directory
        console_level: Minimum level for console output (default: INFO)
        log_dir: Override for the log directory

    Returns:
        Path to the log directory
    """
    log_dir = Path(log_dir) if log_dir is not None else _get_log_directory(app_name)
    log_dir.mkdir(parents=True, exist_ok=True)

    detailed_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    simple_formatter = logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")

    pkg_logger = logging.getLogger("figurekit")
    pkg_logger.setLevel(logging.DEBUG)
    # Remove any existing handlers (in case this is called multiple times)
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    app_log_path = log_dir / "figurekit.log"
    file_handler = RotatingFileHandler(
        app_log_path,
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)
    pkg_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(simple_formatter)
    pkg_logger.addHandler(console_handler)

    log = logging.getLogger(__name__)
    log.info("%s logging initialized; log file: %s", app_name, app_log_path)
    return log_dir


def _get_log_directory(app_name: str) -> Path:
    """
    Get platform-specific log directory.

    - Windows: %LOCALAPPDATA%\\AppName\\logs
    - macOS: ~/Library/Logs/AppName
    - Linux: ~/.local/share/AppName/logs
    """
    home = Path.home()

    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", home / "AppData" / "Local"))
        return base / app_name / "logs"

    elif sys.platform == "darwin":
        return home / "Library" / "Logs" / app_name

    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME", home / ".local" / "share")
        return Path(xdg_data_home) / app_name / "logs"


def get_log_directory(app_name: str = "FigureKit") -> Path:
    """Get the log directory path without setting up logging."""
    return _get_log_directory(app_name)
