"""HTTP trigger for the scheduled search run.

The scheduler calls ``GET /api/cron/run-searches`` with
``Authorization: Bearer $CRON_SECRET``. Serve with::

    uvicorn jobsweep.server:app --port 8000
"""
from __future__ import annotations

import hmac
from typing import Optional

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse

from jobsweep.config import ConfigError, get_env
from jobsweep.lease import RunInProgressError
from jobsweep.log import get_logger
from jobsweep.pipeline import run_once
from jobsweep.sources import ProviderError
from jobsweep.store import StoreError

log = get_logger(__name__)

app = FastAPI(title="jobsweep", version="0.1.0")


def is_authorized(authorization: Optional[str]) -> bool:
    """Constant-time check of the bearer token against CRON_SECRET.

    An unset secret rejects every request.
    """
    secret = get_env("CRON_SECRET")
    if not secret or not authorization:
        return False
    return hmac.compare_digest(authorization.strip().encode("utf-8"), f"Bearer {secret}".encode("utf-8"))


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/cron/run-searches")
def run_searches_endpoint(authorization: Optional[str] = Header(None)):
    if get_env("CRONS_PAUSED").lower() == "true":
        log.info("Cron jobs paused — skipping run")
        return {"message": "Cron jobs are paused"}

    if not is_authorized(authorization):
        log.warning("Rejected run-searches trigger with bad credentials")
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        summary = run_once()
    except RunInProgressError as exc:
        log.warning("Trigger refused: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=409)
    except (ConfigError, ProviderError, StoreError) as exc:
        log.error("Run aborted: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=500)

    return summary.to_dict()
