"""Exclusive run lease so two pipeline runs never overlap."""
from __future__ import annotations

import fcntl
import os
from datetime import datetime, timezone
from pathlib import Path

from jobsweep.log import get_logger

log = get_logger(__name__)

LEASE_FILENAME = "run-searches.lock"


class RunInProgressError(Exception):
    """Another run currently holds the lease."""


class RunLease:
    """Non-blocking ``fcntl`` lock held for the duration of a ``with`` block.

    The lock dies with the process, so a crashed run never leaves a stale
    lease behind. The file body records the holder for debugging only.
    """

    def __init__(self, data_dir: Path) -> None:
        self.path = Path(data_dir) / LEASE_FILENAME
        self._fh = None

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fh = open(self.path, "a+", encoding="utf-8")
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            fh.seek(0)
            holder = fh.read().strip()
            fh.close()
            raise RunInProgressError(f"Run already in progress ({holder or 'unknown holder'})")
        fh.seek(0)
        fh.truncate()
        fh.write(f"pid={os.getpid()} since={datetime.now(timezone.utc).isoformat()}")
        fh.flush()
        self._fh = fh
        log.debug("Acquired run lease %s", self.path)

    def release(self) -> None:
        if self._fh is None:
            return
        fcntl.flock(self._fh.fileno(), fcntl.LOCK_UN)
        self._fh.close()
        self._fh = None
        log.debug("Released run lease %s", self.path)

    def __enter__(self) -> "RunLease":
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()
