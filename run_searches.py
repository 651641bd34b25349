#!/usr/bin/env python3
"""Entry point to run every active saved search once."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobsweep.config import ConfigError
from jobsweep.lease import RunInProgressError
from jobsweep.log import get_logger
from jobsweep.sources import ProviderError
from jobsweep.store import StoreError

log = get_logger(__name__)


if __name__ == "__main__":
    from jobsweep.pipeline import run_once

    try:
        result = run_once()
    except RunInProgressError as exc:
        log.warning("%s", exc)
        sys.exit(1)
    except (ConfigError, ProviderError, StoreError) as exc:
        log.error("Run aborted: %s", exc)
        sys.exit(1)

    log.info("Run complete: %s", result.message)
    log.info("  Searches run: %d", result.searches_run)
    log.info("  Listings found: %d", result.jobs_found)
    log.info("  Inserted: %d (reposted %d)", result.inserted, result.reposted)
    log.info("  Reactivated: %d", result.reactivated)
    log.info("  Blocked: %d", result.blocked)
    log.info("  Skipped: %d", result.skipped)
    for err in result.errors:
        log.info("  Error: %s", err)
