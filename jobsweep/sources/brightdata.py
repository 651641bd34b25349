"""Bright Data LinkedIn jobs dataset — discover listings from search urls.

One synchronous call carries every compiled query. The response is NDJSON;
each line is a listing object or an array of them. Every record echoes the
input it was discovered from under ``discovery_input``, which is how a
listing finds its way back to the query that produced it.
"""
from __future__ import annotations

import json

import requests

from jobsweep.log import get_logger
from jobsweep.models import ScrapedListing
from jobsweep.query import CompiledQuery
from jobsweep.sources.base import ListingSource, ProviderError

log = get_logger(__name__)

API_URL = "https://api.brightdata.com/datasets/v3/scrape"


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _optional(value) -> str | None:
    text = _text(value)
    return text or None


def parse_record(item: object) -> ScrapedListing | None:
    """Turn one provider record into a listing; None for anything unusable."""
    if not isinstance(item, dict) or "error" in item:
        return None
    title = _text(item.get("job_title"))
    if not title:
        return None
    discovery = item.get("discovery_input")
    request_id = discovery.get("request_id") if isinstance(discovery, dict) else None
    return ScrapedListing(
        url=_text(item.get("url")),
        posting_id=str(item.get("job_posting_id") or ""),
        title=title,
        company_name=_text(item.get("company_name")),
        company_url=_optional(item.get("company_url")),
        location=_text(item.get("job_location")),
        summary=_text(item.get("job_summary")),
        seniority=_optional(item.get("job_seniority_level")),
        employment_type=_optional(item.get("job_employment_type")),
        request_id=str(request_id) if request_id else None,
        raw=item,
    )


def parse_ndjson(text: str) -> list[ScrapedListing]:
    listings: list[ScrapedListing] = []
    dropped = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            parsed = json.loads(line)
        except ValueError:
            dropped += 1
            continue
        for item in parsed if isinstance(parsed, list) else [parsed]:
            listing = parse_record(item)
            if listing is None:
                dropped += 1
            else:
                listings.append(listing)
    if dropped:
        log.debug("Dropped %d malformed or errored provider record(s)", dropped)
    return listings


class BrightDataSource(ListingSource):
    name = "brightdata"
    endpoint = API_URL

    def __init__(self, api_key: str, dataset_id: str, timeout: float = 300.0) -> None:
        self.api_key = api_key
        self.dataset_id = dataset_id
        self.timeout = timeout

    def scrape(self, queries: list[CompiledQuery]) -> list[ScrapedListing]:
        if not queries:
            return []
        params = {
            "dataset_id": self.dataset_id,
            "notify": "false",
            "include_errors": "true",
            "type": "discover_new",
            "discover_by": "url",
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"input": [{"url": q.url, "request_id": q.request_id} for q in queries]}

        log.info("Bright Data scrape: %d quer%s", len(queries), "y" if len(queries) == 1 else "ies")
        try:
            r = requests.post(API_URL, params=params, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Bright Data request failed: {exc}") from exc

        if not r.ok:
            raise ProviderError(f"Bright Data error {r.status_code}: {r.text[:500]}", r.status_code)

        listings = parse_ndjson(r.text)
        log.info("Bright Data returned %d listing(s)", len(listings))
        return listings
