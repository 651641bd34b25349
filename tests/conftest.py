from __future__ import annotations

import os
import tempfile
from dataclasses import replace
from datetime import datetime, timezone

import pytest

# Keep log files and data out of the project tree during tests.
os.environ.setdefault("JOBSWEEP_LOG_DIR", tempfile.mkdtemp(prefix="jobsweep-logs-"))

from jobsweep.models import JobRecord, JobStatus, ScrapedListing, SearchDefinition  # noqa: E402
from jobsweep.query import CompiledQuery  # noqa: E402
from jobsweep.sources.base import ListingSource  # noqa: E402
from jobsweep.store import CsvStore, new_id  # noqa: E402

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeSource(ListingSource):
    """Returns canned listings; ones without a request id get the first query's."""

    name = "fake"
    endpoint = "fake://scrape"

    def __init__(self, listings: list[ScrapedListing]) -> None:
        self.listings = listings
        self.calls: list[list[CompiledQuery]] = []

    def scrape(self, queries: list[CompiledQuery]) -> list[ScrapedListing]:
        self.calls.append(list(queries))
        out = []
        for listing in self.listings:
            if listing.request_id is None and queries:
                listing = replace(listing, request_id=queries[0].request_id)
            out.append(listing)
        return out


@pytest.fixture
def store(tmp_path) -> CsvStore:
    s = CsvStore(tmp_path / "data")
    s.ensure_tables()
    return s


def make_search(user_id: str = "user-1", **overrides) -> SearchDefinition:
    fields = dict(
        id=new_id(),
        user_id=user_id,
        label="PM roles",
        keyword="Product Manager",
        location="Berlin",
        experience_level=["Mid-Senior level"],
        work_model=["Remote"],
        job_type=["Full-time"],
    )
    fields.update(overrides)
    return SearchDefinition(**fields)


def make_listing(**overrides) -> ScrapedListing:
    fields = dict(
        url="https://www.linkedin.com/jobs/view/111",
        posting_id="111",
        title="Senior PM",
        company_name="Acme",
        company_url="https://www.linkedin.com/company/acme?trk=public_jobs_topcard-org-name",
        location="Berlin, Germany",
        summary="Lead the product roadmap.",
    )
    fields.update(overrides)
    return ScrapedListing(**fields)


def make_job(user_id: str = "user-1", **overrides) -> JobRecord:
    fields = dict(
        id=new_id(),
        user_id=user_id,
        title="Senior PM",
        posting_url="https://www.linkedin.com/jobs/view/111",
        company_name="Acme",
        company_url="https://www.linkedin.com/company/acme",
        status=JobStatus.REVIEW,
    )
    fields.update(overrides)
    return JobRecord(**fields)
