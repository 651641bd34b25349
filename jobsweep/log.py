"""Centralized logging configuration — stdlib only.

Console output always goes to stdout. A dated file under ``logs/`` (or
``JOBSWEEP_LOG_DIR``) gets everything at DEBUG when the directory is
writable.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def log_dir() -> Path:
    override = os.environ.get("JOBSWEEP_LOG_DIR", "").strip()
    return Path(override) if override else Path(__file__).resolve().parent.parent / "logs"


def log_file_for(day: datetime, directory: Path | None = None) -> Path:
    return (directory or log_dir()) / f"jobsweep_{day.strftime('%Y-%m-%d')}.log"


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configures root handlers on first call."""
    global _configured
    if not _configured:
        _configure(logging.getLogger())
        _configured = True
    return logging.getLogger(name)


def _configure(root: logging.Logger) -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root.setLevel(level)
    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    directory = log_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file_for(datetime.now(), directory), encoding="utf-8")
    except OSError as exc:
        root.warning("File logging disabled (%s): %s", directory, exc)
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    root.addHandler(fh)
