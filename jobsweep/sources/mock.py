"""Mock listing source for offline runs and demos."""
from __future__ import annotations

from jobsweep.log import get_logger
from jobsweep.models import ScrapedListing
from jobsweep.query import CompiledQuery
from jobsweep.sources.base import ListingSource

log = get_logger(__name__)

_SAMPLES: list[tuple[str, str, str]] = [
    ("Senior Product Manager", "TechCorp", "Own the roadmap for our payments platform."),
    ("Site Reliability Engineer", "CloudScale SaaS", "Kubernetes, incident response, on-call."),
]


class MockSource(ListingSource):
    """Returns the same sample listings for every query.

    Urls are derived from the request id, so repeated runs see the same
    postings and exercise the duplicate path.
    """

    name = "mock"
    endpoint = "mock://listings"

    def scrape(self, queries: list[CompiledQuery]) -> list[ScrapedListing]:
        log.info("MockSource generating sample listings for %d query(ies)", len(queries))
        listings: list[ScrapedListing] = []
        for q in queries:
            for n, (title, company, summary) in enumerate(_SAMPLES, 1):
                slug = company.lower().replace(" ", "-")
                listings.append(
                    ScrapedListing(
                        url=f"https://www.linkedin.com/jobs/view/{q.request_id}-{n}",
                        posting_id=f"{q.request_id}-{n}",
                        title=title,
                        company_name=company,
                        company_url=f"https://www.linkedin.com/company/{slug}",
                        location="Remote",
                        summary=summary,
                        request_id=q.request_id,
                    )
                )
        return listings
